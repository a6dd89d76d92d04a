from config_watcher.cli import main

main(prog_name="config-watcher")
