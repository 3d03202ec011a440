from stratcorr.cli.main import app

app()
