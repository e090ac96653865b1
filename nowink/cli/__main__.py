"""
Entry point for CLI module execution.
Allows running: python -m nowink.cli --metadata-uri ... (same flags as nowink-mint)
"""
from nowink.cli.mint_nft import console_main

if __name__ == '__main__':
    console_main()
