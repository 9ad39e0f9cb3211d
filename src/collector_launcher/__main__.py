from collector_launcher.launcher import main

if __name__ == "__main__":
    main()
