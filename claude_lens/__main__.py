"""Allow running as `python -m claude_lens`."""

from claude_lens.cli import main_entry

if __name__ == "__main__":
    main_entry()
