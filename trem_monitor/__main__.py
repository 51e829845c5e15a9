from trem_monitor.main import cli

cli()
