"""Module entrypoint for ``python -m lazymarks``.

Argument parsing and command dispatch live in ``lazymarks.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
