#!/usr/bin/env python
"""
Quick Launch Development Server for Metafix

Starts uvicorn with auto-reload and development-mode environment variables.

Usage:
    python backend/dev.py                    # Start with defaults
    python backend/dev.py --port 8080        # Custom port
    python backend/dev.py --verbose          # Enable debug logging
    python backend/dev.py --json-logs        # Emit JSON log lines

Environment Variables Set:
    DEV_MODE=true   - Enables CORS wildcard
    LOG_LEVEL=DEBUG - When --verbose flag is used
    LOG_FORMAT=json - When --json-logs flag is used
"""

import os
import sys
import argparse


def main():
    """Parse arguments and launch uvicorn development server."""
    parser = argparse.ArgumentParser(
        description="Start Metafix in development mode with auto-reload",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python backend/dev.py                     Start dev server on default port 8000
  python backend/dev.py --port 8080         Start on custom port 8080
  python backend/dev.py --verbose           Enable debug logging
        """
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Server port (default: 8000)"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Server host (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit structured JSON logs"
    )

    args = parser.parse_args()

    backend_root = os.path.abspath(os.path.dirname(__file__))
    if backend_root not in sys.path:
        sys.path.insert(0, backend_root)
    os.environ["PYTHONPATH"] = backend_root + os.pathsep + os.environ.get("PYTHONPATH", "")

    os.environ["DEV_MODE"] = "true"
    if args.verbose:
        os.environ["LOG_LEVEL"] = "DEBUG"
    if args.json_logs:
        os.environ["LOG_FORMAT"] = "json"

    print("=" * 60)
    print("Metafix - Development Mode")
    print("=" * 60)
    print(f"Server: http://{args.host}:{args.port}")
    print(f"API docs: http://{args.host}:{args.port}/docs")
    print(f"Log Level: {'DEBUG' if args.verbose else 'INFO'}")
    print("=" * 60)
    print("\nPress CTRL+C to stop the server\n")

    try:
        import uvicorn
        os.chdir(backend_root)
        uvicorn.run(
            "metafix.main:app",
            host=args.host,
            port=args.port,
            reload=True,
            reload_dirs=["metafix"],
            log_level="debug" if args.verbose else "info",
        )
    except KeyboardInterrupt:
        print("\n\nShutting down development server...")
        sys.exit(0)
    except Exception as e:
        print(f"\n\nError starting development server: {e}")
        print("\nTroubleshooting:")
        print(f"  1. Check if port {args.port} is already in use")
        print("  2. Verify uvicorn is installed: pip install uvicorn[standard]")
        sys.exit(1)


if __name__ == "__main__":
    main()
