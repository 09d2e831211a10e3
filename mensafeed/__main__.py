"""`python -m mensafeed meals 187` is the same as the `mensafeed` console script."""

from mensafeed.cli import main

if __name__ == "__main__":
    main()
