"""Derive the cfg attributes of a target triple.

Only the attributes dependency predicates commonly test are modelled:
arch, os, env, abi, vendor, family, pointer width and endianness.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from errors import UnknownPlatform

_KNOWN_OS = {
    "linux", "android", "windows", "darwin", "macos", "ios", "tvos", "watchos",
    "visionos", "freebsd", "netbsd", "openbsd", "dragonfly", "solaris", "illumos",
    "fuchsia", "redox", "haiku", "emscripten", "wasi", "unknown", "none", "hermit",
    "uefi", "aix", "nto", "hurd", "l4re", "cuda", "vita", "horizon", "espidf",
}
_UNIX_OS = {
    "linux", "android", "macos", "ios", "tvos", "watchos", "visionos", "freebsd",
    "netbsd", "openbsd", "dragonfly", "solaris", "illumos", "fuchsia", "redox",
    "haiku", "emscripten", "aix", "nto", "hurd", "l4re", "horizon", "espidf",
}
_ENV_PREFIXES = ("gnu", "musl", "msvc", "uclibc", "newlib", "sgx", "ohos", "relibc")
_64_BIT_ARCH = {
    "x86_64", "aarch64", "riscv64", "wasm64", "mips64", "powerpc64", "s390x",
    "sparc64", "loongarch64",
}
_16_BIT_ARCH = {"avr", "msp430"}


def _normalize_arch(raw: str) -> str:
    if raw in ("i386", "i586", "i686"):
        return "x86"
    if raw in ("arm64", "aarch64_be"):
        return "aarch64"
    for prefix, arch in (
        ("riscv64", "riscv64"),
        ("riscv32", "riscv32"),
        ("mips64", "mips64"),
        ("mips", "mips"),
        ("powerpc64", "powerpc64"),
        ("arm", "arm"),
        ("thumb", "arm"),
    ):
        if raw.startswith(prefix):
            return arch
    return raw


def _is_big_endian(raw_arch: str) -> bool:
    if raw_arch in ("s390x", "sparc64", "sparc", "aarch64_be"):
        return True
    if raw_arch.startswith(("powerpc", "mips")):
        return not raw_arch.endswith(("le", "el"))
    return raw_arch.startswith(("armeb", "thumbeb"))


def _split_env(raw: str) -> Tuple[str, str]:
    """Split the environment component into (env, abi), e.g. gnueabihf -> (gnu, eabihf)."""
    for prefix in _ENV_PREFIXES:
        if raw.startswith(prefix):
            return prefix, raw[len(prefix):]
    return "", raw


@dataclass(frozen=True)
class TargetInfo:
    """cfg attributes of one target triple."""
    triple: str
    arch: str
    vendor: str
    os: str
    env: str
    abi: str
    family: Tuple[str, ...]
    pointer_width: int
    endian: str

    @classmethod
    def from_triple(cls, triple: str) -> "TargetInfo":
        """Interpret a triple such as x86_64-unknown-linux-gnu.

        Raises:
            UnknownPlatform: If the triple has fewer than two components.
        """
        parts = triple.strip().split("-")
        if len(parts) < 2 or not all(parts):
            raise UnknownPlatform(f"Cannot interpret target triple {triple!r}")

        raw_arch = parts[0]
        vendor, os_name, env_raw = "unknown", "unknown", ""
        if len(parts) == 2:
            os_name = parts[1]
        elif parts[1] == "linux":
            # arch-linux-android style, vendor omitted
            os_name, env_raw = "linux", parts[2]
        elif len(parts) == 3:
            vendor = parts[1]
            if parts[2] in _KNOWN_OS or parts[2].startswith("wasi"):
                os_name = parts[2]
            elif parts[1] == "none":
                vendor, os_name, env_raw = "unknown", "none", parts[2]
            else:
                os_name = parts[2]
        else:
            vendor, os_name, env_raw = parts[1], parts[2], "-".join(parts[3:])

        if os_name == "darwin":
            os_name = "macos"
        elif os_name.startswith("wasi"):
            os_name = "wasi"
        if os_name == "linux" and env_raw.startswith("android"):
            os_name, env_raw = "android", env_raw[len("android"):]

        env, abi = _split_env(env_raw)
        arch = _normalize_arch(raw_arch)

        family = []
        if os_name in _UNIX_OS:
            family.append("unix")
        if os_name == "windows":
            family.append("windows")
        if arch.startswith("wasm"):
            family.append("wasm")

        if arch in _64_BIT_ARCH:
            width = 64
        elif arch in _16_BIT_ARCH:
            width = 16
        else:
            width = 32

        return cls(
            triple=triple,
            arch=arch,
            vendor=vendor,
            os=os_name,
            env=env,
            abi=abi,
            family=tuple(family),
            pointer_width=width,
            endian="big" if _is_big_endian(raw_arch) else "little",
        )

    def has_flag(self, name: str) -> bool:
        """Bare cfg flags: only the family shorthands are set for a target."""
        return name in ("unix", "windows") and name in self.family

    def has_value(self, key: str, value: str) -> bool:
        if key == "target_family":
            return value in self.family
        if key == "target_has_atomic":
            return value == "ptr" or (value.isdigit() and int(value) <= self.pointer_width)
        actual = {
            "target_arch": self.arch,
            "target_os": self.os,
            "target_env": self.env,
            "target_abi": self.abi,
            "target_vendor": self.vendor,
            "target_pointer_width": str(self.pointer_width),
            "target_endian": self.endian,
        }.get(key)
        return actual is not None and actual == value
