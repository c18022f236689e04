"""Harbor Tales — dev launcher. Starts the backend, or plays the story in the terminal."""

import argparse
import logging
import os
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13013")


def typewrite(text: str, delay: float) -> None:
    for ch in text:
        sys.stdout.write(ch)
        sys.stdout.flush()
        if delay:
            time.sleep(delay)
    sys.stdout.write("\n")


def play(data_dir: Path) -> None:
    """Play through the story on stdin/stdout."""
    from storyline import storage
    from storyline.narrative import StorySession
    from storyline.parser import segments_to_text

    storage.init_storage(data_dir)
    config = storage.get_config()
    delay = config["typewriter_delay_ms"] / 1000
    session = StorySession(fallback_tail_limit=config["fallback_tail_limit"])

    turn = session.begin(storage.get_opening_fragment())
    while True:
        for seg in turn.segments:
            typewrite(segments_to_text([seg]), delay)
        live = [c for c in turn.choices if not c.disabled]
        if session.finished or not live:
            print("\n— The End —")
            return
        print()
        for i, choice in enumerate(turn.choices, 1):
            marker = "  " if not choice.disabled else "x "
            print(f"{marker}{i}. {choice.text}")
        picked = None
        while picked is None:
            answer = input("> ").strip()
            if answer.lower() in ("q", "quit", "exit"):
                return
            if answer.isdigit() and 1 <= int(answer) <= len(turn.choices):
                candidate = turn.choices[int(answer) - 1]
                if not candidate.disabled:
                    picked = candidate
        print()
        turn = session.choose(picked.id)


def main():
    parser = argparse.ArgumentParser(description="Harbor Tales dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", default=PORT, help=f"Port (default: {PORT})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument("--play", action="store_true",
                        help="Play the story in this terminal instead of serving it")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    data_dir = args.data_dir or Path(os.getenv("DATA_DIR", str(ROOT / "data")))
    if args.play:
        # Keep routing chatter out of the story text
        if not args.verbose:
            logging.getLogger("storyline").setLevel(logging.WARNING)
        try:
            play(data_dir)
        except (KeyboardInterrupt, EOFError):
            print()
        return

    # Pass the data dir on so the app module picks it up on import
    os.environ["DATA_DIR"] = str(data_dir.resolve())

    import uvicorn

    print(f"Starting backend on http://localhost:{args.port} ...")
    uvicorn.run("storyline.app:app", host=args.host, port=int(args.port), reload=args.reload)


if __name__ == "__main__":
    main()
