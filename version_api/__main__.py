from version_api.main import main

main()
