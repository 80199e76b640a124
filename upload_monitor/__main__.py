"""Entry point for Upload Monitor.

Usage:
    python -m upload_monitor [folder]
"""

from upload_monitor.service import main

if __name__ == "__main__":
    main()
