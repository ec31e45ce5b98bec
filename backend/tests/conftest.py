import sys
from pathlib import Path


# Tests import the backend packages (`search.*`, `drawing.*`, `main`, ...)
# straight from `backend/`, installed or not.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))
