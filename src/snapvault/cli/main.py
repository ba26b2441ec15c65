"""snapvault CLI entry point"""

import click

from .command.init import init
from .command.listen import listen
from .command.serve import serve


@click.group(
    name="snapvault",
    help="snapvault - archive WhatsApp images and browse them in a gallery",
)
def main():
    """Main CLI entry point"""
    pass


# Register commands
main.add_command(init)
main.add_command(listen)
main.add_command(serve)


if __name__ == "__main__":
    main()
