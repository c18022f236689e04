"""File-based JSON storage.

Data layout:
  data/
    config.json                    App settings (parser tuning, streaming, audio toggles)
    sessions/
      <user_session>/              One directory per user session key
        <conversation_id>.json     Conversation: segments, offered choices,
                                   selected choices, thread progress
  presets/
    opening.xml                    File-backed opening fragment (read once, cached)

Session keys and conversation ids must match [A-Za-z0-9_-]{1,128};
anything else raises ValueError before touching the filesystem.

Config: get_config() returns defaults merged with stored values.
update_config() applies partial updates: audio merged key-by-key, scalars
overwritten, unknown keys ignored.
"""

# Re-export all public symbols so `from storyline import storage` keeps working.

from .core import (  # noqa: F401
    data_dir,
    get_opening_fragment,
    init_storage,
    presets_dir,
    sessions_dir,
    validate_key,
)

from .conversations import (  # noqa: F401
    clear_conversations,
    create_conversation,
    delete_conversation,
    export_conversations,
    generate_title,
    get_conversation,
    get_conversation_context,
    list_conversations,
    update_conversation,
)

from .config import (  # noqa: F401
    get_config,
    update_config,
)
