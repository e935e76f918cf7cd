from waiveo_installer.cli.install import main

if __name__ == "__main__":
    main()
