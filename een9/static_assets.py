"""Static files served by URL, loaded from directories by name postfix."""

import os
import stat
from dataclasses import dataclass, field

from een9.errors import ServerError, format_errno
from een9.os_utils import read_file
from een9.sync import RwLock, RwlockReadGuard, RwlockWriteGuard


@dataclass
class PostfixFilter:
    """Files whose names end in ``required_postfix`` get ``assigned_type``."""

    required_postfix: str
    assigned_type: str


@dataclass
class AssetRule:
    """A directory whose files are published under ``url_prefix``.

    The first matching postfix filter decides the type of a file; files that
    match none are not published.
    """

    directory: str
    url_prefix: str
    postfix_rules_type_assign: list = field(default_factory=list)


@dataclass
class StaticAsset:
    """A loaded file and its content type."""

    type: str
    content: bytes


def detour_over_regular_folder(path):
    """List the regular files below ``path``.

    Each entry is the file's path relative to ``path``, starting with ``/``.
    Raises ServerError on an unreadable entry or one that is neither a file
    nor a directory.
    """
    result = []
    todo = [""]
    while todo:
        cur = todo.pop()
        full = f"{path}/{cur}"
        try:
            info = os.stat(full)
        except OSError as exc:
            raise ServerError(format_errno(f'stat("{cur}")', exc.errno)) from exc
        if stat.S_ISDIR(info.st_mode):
            try:
                names = os.listdir(full)
            except OSError as exc:
                raise ServerError(format_errno(f'opendir("{cur}")', exc.errno)) from exc
            todo.extend(f"{cur}/{name}" for name in names)
        elif stat.S_ISREG(info.st_mode):
            result.append(cur)
        else:
            raise ServerError(f'unknown fs entry type "{cur}"')
    return result


@dataclass
class StaticAssetManager:
    """Rules and the assets they produced, keyed by URL."""

    rules: list = field(default_factory=list)
    url_to_asset: dict = field(default_factory=dict)

    def update(self):
        """Reload every asset from disk according to the rules."""
        self.url_to_asset.clear()
        for rule in self.rules:
            for file in detour_over_regular_folder(rule.directory):
                for postfix_filter in rule.postfix_rules_type_assign:
                    if file.endswith(postfix_filter.required_postfix):
                        content = read_file(f"{rule.directory}/{file}")
                        self.url_to_asset[rule.url_prefix + file] = StaticAsset(
                            postfix_filter.assigned_type, content
                        )
                        break


class StaticAssetStore:
    """A StaticAssetManager shared between threads."""

    def __init__(self, rules=()):
        self._lock = RwLock()
        self._manager = StaticAssetManager(list(rules))

    def get_asset(self, url):
        """Return the asset published at ``url``; raise KeyError if there is none."""
        with RwlockReadGuard(self._lock):
            try:
                return self._manager.url_to_asset[url]
            except KeyError:
                raise KeyError(url) from None

    def update(self, new_rules=None):
        """Reload the assets, first replacing the rules if ``new_rules`` is given."""
        with RwlockWriteGuard(self._lock):
            if new_rules is not None:
                self._manager.rules = list(new_rules)
            self._manager.update()