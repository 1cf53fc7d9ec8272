from sgprovider.cli import main

main()
