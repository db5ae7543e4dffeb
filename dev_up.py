# -----------------------------------------------------------------------------
# dev_up.py: Dev Orchestrator for the Financial Formula Calculator
# Self-checks the formula catalogue, boots FastAPI (uvicorn) + Streamlit UI,
# and relays both processes' logs.
# Key details:
#   - Binds API to API_HOST; health probe connects via 127.0.0.1 when bound
#     to 0.0.0.0 (not connectable)
#   - API_URL for the UI is derived after .env is loaded
# -----------------------------------------------------------------------------

from __future__ import annotations
import atexit
import os
import sys
import time
import socket
import subprocess
import urllib.request
from pathlib import Path
from dotenv import load_dotenv

# ---------------------- CONFIG (base defaults) ----------------------
PROJECT_ROOT = Path(__file__).parent.resolve()
API_APP = "api.main:app"              # uvicorn import path for FastAPI app
API_HOST = "127.0.0.1"
API_PORT = 8000
UI_PORT  = 8501
UI_FILE  = PROJECT_ROOT / "ui" / "app.py"
PYTHONPATH_APPEND = str(PROJECT_ROOT / "src")

# ---------------------- HELPERS ----------------------
def echo(msg: str): print(f"[dev_up] {msg}", flush=True)
def fail(msg: str, code: int = 1): echo(f"❌ {msg}"); sys.exit(code)

def check_port_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.settimeout(0.5)
        return s.connect_ex((host, port)) != 0

def wait_for_api(url: str, timeout: float = 60.0) -> bool:
    start = time.time()
    while time.time() - start < timeout:
        try:
            with urllib.request.urlopen(url, timeout=2) as r:
                if r.status == 200:
                    return True
        except OSError:
            time.sleep(0.4)
    return False

def validate_catalog(path: str | None):
    """Parse the catalogue and solve every branch against its sample values."""
    sys.path.insert(0, PYTHONPATH_APPEND)
    from fincalc.catalog import Catalog, CatalogError
    from fincalc.verify import check_catalog
    try:
        catalog = Catalog.from_file(path) if path else Catalog.default()
    except (OSError, CatalogError) as e:
        fail(f"Catalog validation failed:\n{e}")
    failures = check_catalog(catalog)
    for fid, checks in failures.items():
        for c in checks:
            echo(f"formula {fid}: {c.target} expected {c.expected}, got {c.got} (residual {c.residual})")
    if failures:
        fail(f"{len(failures)} formula(s) fail the self-check.")
    echo(f"✅ Catalog OK ({len(catalog.formulas)} formulas)")

def ensure_env(bind_host: str, bind_port: int):
    # prefer a client-connectable API_URL
    client_host = "127.0.0.1" if bind_host in ("0.0.0.0", "0") else bind_host
    os.environ.setdefault("API_URL", f"http://{client_host}:{bind_port}")

def which_or_fail(pkg: str, hint: str):
    try:
        __import__(pkg)
    except ImportError:
        fail(f"{pkg} missing → {hint}")

# ---------------------- STARTERS ----------------------
def start_uvicorn(host: str, port: int) -> subprocess.Popen:
    env = os.environ.copy()
    env["PYTHONPATH"] = (env.get("PYTHONPATH", "") + os.pathsep + PYTHONPATH_APPEND).strip(os.pathsep)
    cmd = [sys.executable, "-m", "uvicorn", API_APP, "--host", host, "--port", str(port), "--reload"]
    echo(f"▶ Starting API → {' '.join(cmd)}")
    return subprocess.Popen(cmd, cwd=str(PROJECT_ROOT), env=env, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)

def start_streamlit(port: int) -> subprocess.Popen:
    """Launch Streamlit UI on the configured port."""
    env = os.environ.copy()
    env.setdefault("STREAMLIT_SERVER_HEADLESS", "true")
    env.setdefault("STREAMLIT_BROWSER_GATHER_USAGE_STATS", "false")
    cmd = [
        sys.executable, "-m", "streamlit", "run", str(UI_FILE),
        "--server.port", str(port),
        "--server.headless", env["STREAMLIT_SERVER_HEADLESS"],
    ]
    echo(f"▶ Starting UI → {' '.join(cmd)}")
    return subprocess.Popen(
        cmd, cwd=str(PROJECT_ROOT), env=env,
        stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True
    )


# ---------------------- MAIN ----------------------
def main():
    echo("🚀 Launching Financial Formula Calculator dev environment...")

    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        echo("Loaded .env file")

    # Resolve env *after* .env load
    bind_host = os.getenv("API_HOST", API_HOST)
    bind_port = int(os.getenv("API_PORT", API_PORT))
    ui_port = int(os.getenv("UI_PORT", UI_PORT))
    probe_host = "127.0.0.1" if bind_host in ("0.0.0.0", "0") else bind_host
    health_url = f"http://{probe_host}:{bind_port}/health"
    ensure_env(bind_host, bind_port)

    which_or_fail("uvicorn",  "pip install uvicorn[standard]")
    which_or_fail("streamlit","pip install streamlit")

    validate_catalog(os.getenv("CATALOG_PATH"))

    if not check_port_free(probe_host, bind_port): fail(f"Port {bind_port} is in use.")
    if not check_port_free(probe_host, ui_port):  fail(f"Port {ui_port} is in use.")

    api = start_uvicorn(bind_host, bind_port)
    ui  = None

    def cleanup():
        for proc in (ui, api):
            if proc and proc.poll() is None:
                proc.terminate()
                time.sleep(0.5)
                if proc.poll() is None:
                    proc.kill()
    atexit.register(cleanup)

    echo("⌛ Waiting for API /health ...")
    if not wait_for_api(health_url, timeout=60):
        if api.stdout:
            echo("Last API logs:")
            for _ in range(20):
                line = api.stdout.readline()
                if not line: break
                print(f"[API] {line}", end="")
        fail("API failed to become ready in time.")
    echo("✅ API ready")

    ui = start_streamlit(ui_port)
    echo(f"🌐 UI running at: http://localhost:{ui_port}")
    echo(f"📘 API docs: http://localhost:{bind_port}/docs")

    try:
        while True:
            for name, proc in [("API", api), ("UI", ui)]:
                if proc and proc.stdout:
                    line = proc.stdout.readline()
                    if line:
                        print(f"[{name}] {line}", end="")
            if api.poll() is not None or ui.poll() is not None:
                break
            time.sleep(0.2)
    except KeyboardInterrupt:
        echo("🛑 Ctrl+C pressed, shutting down...")
    finally:
        cleanup()
        echo("✅ All processes stopped cleanly.")

if __name__ == "__main__":
    main()
