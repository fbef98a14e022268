# -*- coding: utf-8 -*-
"""
Credential prompt bridge for git.

git asks for credentials through the program named in GIT_ASKPASS. While a
clone runs, AskPassServer listens on a loopback socket and points
GIT_ASKPASS at a small wrapper script that runs this module; the module
forwards git's prompt to the server, which answers through the
username/password callbacks supplied by the UI.

The callbacks receive a writable text stream and write the answer into it.
Nothing is stored: each answer is sent once and discarded.
"""

import io
import os
import secrets
import socket
import stat
import sys
import tempfile
import threading

from gititgui.core import log

PORT_ENV = "GITITGUI_ASKPASS_PORT"
TOKEN_ENV = "GITITGUI_ASKPASS_TOKEN"

_ENCODING = "utf-8"


class AskPassServer:
    """Loopback server answering git credential prompts for one process."""

    def __init__(self, write_username=None, write_password=None):
        self._write_username = write_username
        self._write_password = write_password
        self._token = secrets.token_hex(16)
        self._sock = None
        self._thread = None
        self._script_dir = None
        self._script_path = None

    @property
    def port(self):
        return self._sock.getsockname()[1] if self._sock else None

    @property
    def token(self):
        return self._token

    def __enter__(self):
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(1)
        self._sock.settimeout(0.2)
        self._script_dir = tempfile.mkdtemp(prefix="gititgui-askpass-")
        self._script_path = _write_wrapper_script(self._script_dir)
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        if self._script_path and os.path.exists(self._script_path):
            os.remove(self._script_path)
        if self._script_dir and os.path.isdir(self._script_dir):
            os.rmdir(self._script_dir)
        return False

    def environ(self, base=None):
        """Environment for a git process that should prompt through us."""
        env = dict(os.environ if base is None else base)
        env["GIT_ASKPASS"] = self._script_path
        env["SSH_ASKPASS"] = self._script_path
        env["GIT_TERMINAL_PROMPT"] = "0"
        env[PORT_ENV] = str(self.port)
        env[TOKEN_ENV] = self._token
        package_root = os.path.dirname(os.path.dirname(os.path.dirname(
            os.path.abspath(__file__))))
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (package_root, env.get("PYTHONPATH", "")) if p
        )
        return env

    def answer(self, prompt):
        """Resolve a git prompt to an answer using the callbacks."""
        lower = (prompt or "").lower()
        if "username" in lower:
            callback = self._write_username
        elif "password" in lower or "passphrase" in lower:
            callback = self._write_password
        else:
            log.warning(f"Unrecognized credential prompt: {prompt}")
            return ""

        if callback is None:
            log.warning("git requested credentials but no callback was given")
            return ""

        stream = io.StringIO()
        callback(stream)
        return stream.getvalue().rstrip("\r\n")

    def _serve(self):
        while True:
            sock = self._sock
            if sock is None:
                return
            try:
                conn, _ = sock.accept()
            except socket.timeout:
                continue
            except OSError:
                # socket closed by __exit__
                return
            with conn:
                try:
                    self._handle(conn)
                except (OSError, UnicodeDecodeError) as e:
                    log.warning(f"Credential prompt failed: {e}")

    def _handle(self, conn):
        with conn.makefile("r", encoding=_ENCODING) as reader:
            token = reader.readline().rstrip("\n")
            prompt = reader.readline().rstrip("\n")
        if not secrets.compare_digest(token, self._token):
            log.warning("Rejected credential request with a bad token")
            return
        try:
            reply = self.answer(prompt)
        except Exception as e:
            log.error(f"Credential callback failed: {e}")
            reply = ""
        conn.sendall(reply.encode(_ENCODING))


def _write_wrapper_script(directory):
    python = sys.executable
    if os.name == "nt":
        path = os.path.join(directory, "askpass.bat")
        body = f'@"{python}" -m gititgui.git.askpass %*\r\n'
    else:
        path = os.path.join(directory, "askpass.sh")
        body = f'#!/bin/sh\nexec "{python}" -m gititgui.git.askpass "$@"\n'
    with open(path, "w", encoding=_ENCODING) as f:
        f.write(body)
    os.chmod(path, stat.S_IRWXU)
    return path


def request_answer(prompt, environ=None):
    """Ask the AskPassServer named in environ for an answer to prompt."""
    env = os.environ if environ is None else environ
    port = int(env[PORT_ENV])
    token = env[TOKEN_ENV]
    with socket.create_connection(("127.0.0.1", port), timeout=300) as conn:
        conn.sendall(f"{token}\n{prompt}\n".encode(_ENCODING))
        conn.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            data = conn.recv(4096)
            if not data:
                break
            chunks.append(data)
    return b"".join(chunks).decode(_ENCODING)


def main(argv=None, environ=None):
    """Entry point run by git via GIT_ASKPASS."""
    argv = sys.argv[1:] if argv is None else argv
    env = os.environ if environ is None else environ
    if PORT_ENV not in env or TOKEN_ENV not in env:
        sys.stderr.write("gititgui askpass: no credential server configured\n")
        return 1
    prompt = argv[0] if argv else ""
    try:
        answer = request_answer(prompt, env)
    except (OSError, ValueError) as e:
        sys.stderr.write(f"gititgui askpass: {e}\n")
        return 1
    sys.stdout.write(answer + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
