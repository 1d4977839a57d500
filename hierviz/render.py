# File: render.py

import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from enum import Enum

from hierviz.config import DiagramConfig
from hierviz.dot_generator import STYLESHEET, svg_file_name

TERMINATE_GRACE_SECONDS = 2

CSS = """
.edge:hover * {
  stroke: #ff0000;
}
.edge:hover polygon {
  fill: #ff0000;
}
"""

FALLBACK_SVG = """<?xml version="1.0" encoding="UTF-8" standalone="no"?>
<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN"
 "http://www.w3.org/Graphics/SVG/1.1/DTD/svg11.dtd">
<svg width="420pt" height="60pt" viewBox="0.00 0.00 420.00 60.00"
 xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">
<title>Rendering timed out</title>
<polygon fill="#ffffff" stroke="transparent" points="0,0 420,0 420,60 0,60 0,0"/>
<rect x="4" y="4" width="412" height="52" fill="none" stroke="#000000"/>
<text text-anchor="middle" x="210" y="26" font-family="Times,serif" font-size="14.00">Sorry, rendering timed out on this module. Use Back to return.</text>
<text text-anchor="middle" x="210" y="44" font-family="Times,serif" font-size="11.00">Raise the limit with the --dot-timeout-seconds flag.</text>
</svg>
"""

FAILED_SVG = """<?xml version="1.0" encoding="UTF-8" standalone="no"?>
<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN"
 "http://www.w3.org/Graphics/SVG/1.1/DTD/svg11.dtd">
<svg width="420pt" height="60pt" viewBox="0.00 0.00 420.00 60.00"
 xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">
<title>Rendering failed</title>
<polygon fill="#ffffff" stroke="transparent" points="0,0 420,0 420,60 0,60 0,0"/>
<rect x="4" y="4" width="412" height="52" fill="none" stroke="#000000"/>
<text text-anchor="middle" x="210" y="26" font-family="Times,serif" font-size="14.00">Sorry, this module could not be rendered. Use Back to return.</text>
<text text-anchor="middle" x="210" y="44" font-family="Times,serif" font-size="11.00">The .dot file next to this image is still available.</text>
</svg>
"""


class RenderStatus(Enum):
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed out"
    FAILED = "failed"
    SKIPPED = "skipped"


def add_css(target_dir: str) -> str:
    """Writes the stylesheet that highlights edges under the mouse."""
    path = os.path.join(target_dir, STYLESHEET)
    with open(path, 'w') as f:
        f.write(CSS)
    return path


def run_with_deadline(cmd: list, timeout: float):
    """
    Runs cmd and waits at most timeout seconds for it. A process that is
    still running then is terminated, and killed if it ignores that.
    Returns (RenderStatus, message).
    """
    try:
        proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE, text=True)
    except OSError as e:
        return RenderStatus.FAILED, f"cannot run '{cmd[0]}': {e}"

    with proc:
        try:
            _, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            proc.terminate()
            try:
                proc.wait(timeout=TERMINATE_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
            return RenderStatus.TIMED_OUT, f"timed out after {timeout} seconds"

    if proc.returncode != 0:
        return RenderStatus.FAILED, f"'{cmd[0]}' exited with status {proc.returncode}:\n{stderr}"
    if stderr:
        print(f"Graphviz warnings:\n{stderr}")
    return RenderStatus.SUCCEEDED, ""


def _write_placeholder(svg_path: str, content: str):
    with open(svg_path, 'w') as f:
        f.write(content)


def render(dot_path: str, config: DiagramConfig) -> RenderStatus:
    """Renders one dot file to svg. Problems are reported, never raised."""
    program = config.render_program
    if not config.renderer_enabled:
        return RenderStatus.SKIPPED
    if not dot_path:
        print(f"Warning: tried to call render program {program} without a file name")
        return RenderStatus.FAILED
    if not os.path.exists(dot_path):
        print(f"Warning: tried to call render program {program} on non existent file {dot_path}")
        return RenderStatus.FAILED

    svg_path = svg_file_name(dot_path)
    cmd = [program, "-Tsvg", "-O", dot_path]
    print(f"Rendering {svg_path}...")
    status, message = run_with_deadline(cmd, config.dot_timeout)

    if status is RenderStatus.TIMED_OUT:
        print(f"Warning: rendering timed out after {config.dot_timeout} seconds on {dot_path} "
              f"with command {' '.join(cmd)}")
        print("You can try increasing it with the --dot-timeout-seconds flag")
        _write_placeholder(svg_path, FALLBACK_SVG)
    elif status is RenderStatus.FAILED:
        print(f"Warning: rendering {dot_path} failed: {message}")
        _write_placeholder(svg_path, FAILED_SVG)
    elif not os.path.exists(svg_path):
        print(f"Warning: {program} finished but did not produce {svg_path}")
        _write_placeholder(svg_path, FAILED_SVG)
        status = RenderStatus.FAILED
    else:
        print(f"Wrote Output -> {svg_path}")
    return status


def render_all(dot_paths: list, config: DiagramConfig) -> dict:
    """Renders every file; each file is independent, so they may run in parallel."""
    if config.jobs <= 1 or len(dot_paths) <= 1:
        return {path: render(path, config) for path in dot_paths}

    with ThreadPoolExecutor(max_workers=config.jobs) as pool:
        statuses = list(pool.map(lambda p: render(p, config), dot_paths))
    return dict(zip(dot_paths, statuses))


def show(file_name: str, open_program: str) -> bool:
    """Opens file_name.svg with open_program, or prints where it is."""
    svg_path = svg_file_name(file_name)
    if open_program and open_program != "none":
        try:
            subprocess.run([open_program, svg_path], check=True, capture_output=True)
            return True
        except (OSError, subprocess.CalledProcessError) as e:
            print(f"Warning: could not open {svg_path} with {open_program}: {e}")

    print("There is no program identified which will render the svg files.")
    print(f"The file to start with is {svg_path}, open it in the appropriate viewer")
    print(f"Specific module views should be in the same directory as {svg_path}")
    return False
