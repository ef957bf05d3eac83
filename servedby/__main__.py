from servedby.cli import run

run()
