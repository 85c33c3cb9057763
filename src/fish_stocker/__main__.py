from fish_stocker.cli import app

app()
