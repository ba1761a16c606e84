import sys
from pathlib import Path

project_root = Path(__file__).resolve().parents[1]
src_path = project_root / "src"
for path in (src_path, project_root):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

if "chessweek" in sys.modules:
    for name in list(sys.modules):
        if name == "chessweek" or name.startswith("chessweek."):
            del sys.modules[name]
