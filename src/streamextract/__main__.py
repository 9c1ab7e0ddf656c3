from .CLI import cli

cli()
