from skillforge_cli.main import app

app()
