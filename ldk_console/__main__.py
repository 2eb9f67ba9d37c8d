from ldk_console.main import main

if __name__ == "__main__":
    main()
