#!/usr/bin/env python3
import sys
import uvicorn
from config import settings

def main():
    port = int(sys.argv[1]) if len(sys.argv) > 1 else settings.api_port
    reload = "--reload" in sys.argv[2:]

    print(f"Starting Video Summary API on port {port}")
    print(f"  queue backend: {settings.queue_backend}")
    print(f"  transcription provider: {settings.transcription_provider}")

    uvicorn.run("api.main:app", host="0.0.0.0", port=port, reload=reload)

if __name__ == "__main__":
    main()
