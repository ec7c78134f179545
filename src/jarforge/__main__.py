from jarforge.cli.app import app

app()
