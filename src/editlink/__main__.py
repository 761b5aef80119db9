from editlink.cli import main

main()
