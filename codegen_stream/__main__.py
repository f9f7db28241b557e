"""Allow running as `python -m codegen_stream`."""

from codegen_stream.cli import main

if __name__ == "__main__":
    main()
