from vega_exporter.app import main

main()
