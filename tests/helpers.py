"""
Test helpers shared across modules.
"""

import stat
from pathlib import Path

from craterun.core.models import InvocationRequest, PackageSpec


def make_executable(path: Path, body: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Write an executable script at ``path`` (parents created)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def make_request(token: str = "fakecrate", **kwargs) -> InvocationRequest:
    """Build an InvocationRequest for ``name[@version]`` without the splitter."""
    name, _, version = token.partition("@")
    binary = kwargs.pop("binary", None)
    spec = PackageSpec(name=name, version=version or None, binary=binary)
    return InvocationRequest(spec=spec, **kwargs)


# Stand-in for cargo: logs its arguments, honors CARGO_INSTALL_ROOT and
# drops a script named after the crate (or --bin) into <root>/bin. The
# installed script records its own arguments and exits with
# $FAKE_EXIT_CODE.
FAKE_CARGO = r'''#!/bin/sh
printf '%s\n' "$*" >> "$FAKE_CARGO_LOG"
mode="$1"
shift
if [ "$mode" = "binstall" ] && [ -n "$FAKE_BINSTALL_FAIL" ]; then
    echo "no prebuilt binary available"
    exit 1
fi
if [ "$mode" = "install" ] && [ -n "$FAKE_INSTALL_FAIL" ]; then
    echo "error: could not compile"
    exit 101
fi
name=""
bin=""
while [ $# -gt 0 ]; do
    case "$1" in
        --target-dir|--version|--disable-strategies) shift 2 ;;
        --bin) bin="$2"; shift 2 ;;
        -*) shift ;;
        *) name="$1"; shift ;;
    esac
done
name="${name%%@*}"
[ -n "$bin" ] || bin="$name"
[ -n "$FAKE_SKIP_BINARY" ] && exit 0
mkdir -p "$CARGO_INSTALL_ROOT/bin"
cat > "$CARGO_INSTALL_ROOT/bin/$bin" <<'SCRIPT'
#!/bin/sh
printf '%s\n' "$@" > "$FAKE_RUN_LOG"
exit "${FAKE_EXIT_CODE:-0}"
SCRIPT
chmod +x "$CARGO_INSTALL_ROOT/bin/$bin"
echo "installed $bin"
'''


def install_fake_cargo(bin_dir: Path, with_binstall: bool = True) -> Path:
    """Put the fake ``cargo`` (and optionally ``cargo-binstall``) in ``bin_dir``."""
    cargo = make_executable(bin_dir / "cargo", FAKE_CARGO)
    if with_binstall:
        make_executable(bin_dir / "cargo-binstall")
    return cargo


def read_lines(path: Path) -> list[str]:
    """Lines of a log file, or [] when it does not exist."""
    if not path.exists():
        return []
    return path.read_text().splitlines()
