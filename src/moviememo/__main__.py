"""Allow ``python -m moviememo``."""

from moviememo.cli.main import main

if __name__ == "__main__":
    main()
