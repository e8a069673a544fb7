from .main import cli_entry

cli_entry()
