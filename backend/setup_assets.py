#!/usr/bin/env python3
"""
Setup script to download the open fonts used by the renderer.
Run this before starting the server. Families without a TTF here
fall back to system DejaVu fonts, then to Pillow's built-in font.
"""

import os
import urllib.request
import zipfile
from pathlib import Path

from app.services.image_renderer import FONT_FILES

FONTS_DIR = Path("assets") / "fonts"

# Open-licensed families that can be fetched automatically
FONT_DOWNLOADS = {
    "Inter": "https://fonts.google.com/download?family=Inter",
    "monospace": "https://fonts.google.com/download?family=JetBrains%20Mono",
}


def setup_directories():
    """Create required directories."""
    print("Creating directories...")
    FONTS_DIR.mkdir(parents=True, exist_ok=True)
    print("✓ Directories created")


def download_family(family: str, url: str):
    """Download a family archive and extract the regular and bold static TTFs."""
    wanted = set(FONT_FILES[family].values())
    if all((FONTS_DIR / name).exists() for name in wanted):
        print(f"✓ {family} fonts already exist, skipping download")
        return

    zip_path = FONTS_DIR / f"{family}.zip"
    print(f"Downloading {family} fonts...")
    try:
        urllib.request.urlretrieve(url, zip_path)

        with zipfile.ZipFile(zip_path, 'r') as zip_ref:
            for file in zip_ref.namelist():
                font_name = os.path.basename(file)
                if font_name in wanted:
                    (FONTS_DIR / font_name).write_bytes(zip_ref.read(file))
                    print(f"  Extracted: {font_name}")

        zip_path.unlink()
        print(f"✓ {family} fonts installed")

    except Exception as e:
        print(f"✗ Failed to download {family} fonts: {e}")
        print(f"  Place {', '.join(sorted(wanted))} in: {FONTS_DIR}")


def check_assets() -> bool:
    """Report which font files are present."""
    print("\nFont Status:")
    missing = []
    for family, files in FONT_FILES.items():
        for filename in files.values():
            if (FONTS_DIR / filename).exists():
                print(f"✓ {filename} found")
            else:
                missing.append(filename)
                print(f"✗ {filename} missing ({family} will use a fallback font)")
    return not missing


def main():
    print("=" * 50)
    print("Social Post Generator - Asset Setup")
    print("=" * 50)
    print()

    setup_directories()
    for family, url in FONT_DOWNLOADS.items():
        download_family(family, url)

    all_ready = check_assets()

    print()
    print("=" * 50)
    if all_ready:
        print("✓ All fonts ready! You can start the server.")
    else:
        print("⚠ Some fonts are missing. Rendering still works with fallback fonts.")
    print("=" * 50)


if __name__ == "__main__":
    main()
