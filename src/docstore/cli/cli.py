"""CLI entrypoint: Typer app definition and command registration"""

import typer

from docstore.cli.commands import (
    backup_cmd, backups_cmd, get_cmd, list_cmd, remove_cmd, restore_cmd, save_cmd, search_cmd,
)


app = typer.Typer(name="docstore", no_args_is_help=True, help="Documentation cache with rotating backups")

app.command(name="save")(save_cmd)
app.command(name="get")(get_cmd)
app.command(name="list")(list_cmd)
app.command(name="search")(search_cmd)
app.command(name="remove")(remove_cmd)
app.command(name="backup")(backup_cmd)
app.command(name="backups")(backups_cmd)
app.command(name="restore")(restore_cmd)
