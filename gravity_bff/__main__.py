"""
Package entry point for the Gravity BFF.

If the application fails to start, a minimal server keeps ``/health``
answering so the failure is visible to the platform's health checks.
"""
import os
import sys


def create_emergency_app(error_message: str):
    """Create a minimal FastAPI app for emergency mode."""
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse

    app = FastAPI(title="Gravity BFF - Emergency Mode")

    @app.get("/health")
    async def health():
        return JSONResponse(
            status_code=200,
            content={
                "status": "emergency",
                "error": error_message,
                "message": "Main application failed to start. Check container logs.",
            }
        )

    return app


def run_emergency_server(error_message: str):
    """Start emergency server synchronously."""
    import uvicorn

    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "8080"))

    print(f"EMERGENCY: Starting fallback server on {host}:{port}", flush=True, file=sys.stderr)
    print(f"EMERGENCY: Error was: {error_message}", flush=True, file=sys.stderr)

    app = create_emergency_app(error_message)
    uvicorn.run(app, host=host, port=port, log_level="info")


def run_main():
    """Run the main application, falling back to the emergency server on failure."""
    try:
        import asyncio
        from .main import main

        asyncio.run(main())

    except Exception as e:
        import traceback
        startup_error = f"{type(e).__name__}: {e}"
        print(f"FATAL: {startup_error}", flush=True, file=sys.stderr)
        traceback.print_exc(file=sys.stderr)

        run_emergency_server(startup_error)


if __name__ == "__main__":
    run_main()
