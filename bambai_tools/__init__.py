from pathlib import Path

# Each subdirectory with a manifest.json is one tool package.
TOOLS_ROOT = Path(__file__).resolve().parent
