from compat_scanner.main import main

main()
