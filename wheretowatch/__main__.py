from wheretowatch.cli import cli

cli()
