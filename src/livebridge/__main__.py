from livebridge.cli import main

main()
