"""Allow ``python -m yamlgrid``."""

from yamlgrid.cli import app

if __name__ == "__main__":
    app(prog_name="yamlgrid")
