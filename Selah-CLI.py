# Selah-CLI.py

from selah.app import main

if __name__ == "__main__":
    main()
