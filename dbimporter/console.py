# ---------- Console output ----------
# Everything the importer reports goes to stdout, flushed, one line per
# event, with an emoji status marker in front.
import sys


def log(msg: str) -> None:
    print(msg, flush=True)


def warn(msg: str) -> None:
    log(f"⚠️ {msg}")


def fail(msg: str) -> None:
    log(f"❌ {msg}")


def is_tty() -> bool:
    """True when stdout is an interactive terminal (progress bars only then)."""
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        # replaced or closed stdout
        return False
