#!/usr/bin/env python3
"""
Token Ledger Entry Point

Starts the FastAPI server (port 8090 by default) in front of the token ledger.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from token_ledger.api import run_server
from token_ledger.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("🪙 Starting Token Ledger...")
    print(f"💾 Storage backend: {config.storage_backend} ({config.database_path})")
    print(f"🪪 Caller identity header: {config.caller_header}")
    print(f"🌐 API available at: http://localhost:{config.api_port}")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(debug=False)
    except KeyboardInterrupt:
        print("\n👋 Shutting down Token Ledger...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
