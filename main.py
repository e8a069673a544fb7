"""
Runs the Dolby Vision converter from a source checkout.

    python main.py movie.mkv -o converted --subtitles
"""

from dv_converter.main import cli_entry

if __name__ == "__main__":
    cli_entry()
