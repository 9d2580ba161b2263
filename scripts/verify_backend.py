import os
import subprocess
import sys
import time
from pathlib import Path

import requests


def wait_for_health(url: str, timeout: float = 20.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            r = requests.get(url, timeout=2)
            if r.ok:
                return True
        except requests.RequestException:
            pass
        time.sleep(0.5)
    return False


def check_endpoints(base: str) -> None:
    r = requests.get(f"{base}/", timeout=5)
    r.raise_for_status()

    r = requests.post(f"{base}/ask", json={}, timeout=5)
    if r.status_code != 400:
        raise RuntimeError(f"/ask without question returned {r.status_code}")

    r = requests.post(f"{base}/ask", json={"question": "where can I study?"}, timeout=15)
    r.raise_for_status()
    body = r.json()
    print(f"/ask -> source={body['source']} confidence={body['confidence']}")

    r = requests.post(f"{base}/chat", json={"message": "where can I eat on campus?"}, timeout=15)
    r.raise_for_status()
    body = r.json()
    print(f"/chat -> source={body['source']} history={len(body['history'])}")

    requests.delete(f"{base}/history", timeout=5).raise_for_status()
    history = requests.get(f"{base}/history", timeout=5).json()["history"]
    if history:
        raise RuntimeError("history not empty after DELETE /history")


def main():
    repo = Path(__file__).resolve().parents[1]
    port = os.environ.get("VERIFY_PORT", "5055")
    env = os.environ.copy()
    env["PORT"] = port
    env["PYTHONPATH"] = str(repo) + os.pathsep + env.get("PYTHONPATH", "")

    backend = subprocess.Popen(
        [sys.executable, "-u", str(repo / "main.py"), "serve", "--host", "127.0.0.1", "--port", port],
        cwd=str(repo),
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )

    base = f"http://127.0.0.1:{port}"
    try:
        if not wait_for_health(f"{base}/health", timeout=25):
            backend.terminate()
            out, _ = backend.communicate(timeout=5)
            print("Backend output (partial):\n", (out or "")[:2000])
            return 2

        check_endpoints(base)
        print("OK: backend endpoints verified")
        return 0
    finally:
        backend.terminate()
        try:
            backend.wait(timeout=3)
        except subprocess.TimeoutExpired:
            backend.kill()


if __name__ == "__main__":
    raise SystemExit(main())
