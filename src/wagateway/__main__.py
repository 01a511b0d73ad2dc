from wagateway.cli import app

app()
