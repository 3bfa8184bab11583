from rsspot_exporter.cli import run

run()
