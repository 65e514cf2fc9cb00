from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from dirdiag.core.config import LSPServerConfig
from dirdiag.core.utils import command_exists


class LSPServerSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    command: str
    args: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    install_hint: str = ""

    def launch_command(self, executable: str | None = None) -> list[str]:
        """argv for the server, optionally with ``command`` already resolved."""
        return [executable or self.command, *self.args]


class LSPServerStatus(BaseModel):
    spec: LSPServerSpec
    installed: bool = Field(description="Whether the launch command is on the search path")


BUILTIN_SERVERS: tuple[LSPServerSpec, ...] = (
    LSPServerSpec(
        key="typescript",
        name="TypeScript Language Server",
        command="typescript-language-server",
        args=("--stdio",),
        extensions=(".ts", ".tsx", ".js", ".jsx", ".mts", ".cts", ".mjs", ".cjs"),
        install_hint="npm install -g typescript-language-server typescript",
    ),
    LSPServerSpec(
        key="python",
        name="Python Language Server (pylsp)",
        command="pylsp",
        extensions=(".py", ".pyw"),
        install_hint="pip install python-lsp-server",
    ),
    LSPServerSpec(
        key="rust",
        name="Rust Analyzer",
        command="rust-analyzer",
        extensions=(".rs",),
        install_hint="rustup component add rust-analyzer",
    ),
    LSPServerSpec(
        key="go",
        name="gopls",
        command="gopls",
        args=("serve",),
        extensions=(".go",),
        install_hint="go install golang.org/x/tools/gopls@latest",
    ),
    LSPServerSpec(
        key="c",
        name="clangd",
        command="clangd",
        extensions=(".c", ".h", ".cpp", ".cc", ".cxx", ".hpp", ".hxx"),
        install_hint="Install clangd from your package manager or LLVM",
    ),
    LSPServerSpec(
        key="java",
        name="Eclipse JDT Language Server",
        command="jdtls",
        extensions=(".java",),
        install_hint="Install from https://github.com/eclipse/eclipse.jdt.ls",
    ),
    LSPServerSpec(
        key="json",
        name="JSON Language Server",
        command="vscode-json-language-server",
        args=("--stdio",),
        extensions=(".json", ".jsonc"),
        install_hint="npm install -g vscode-langservers-extracted",
    ),
    LSPServerSpec(
        key="html",
        name="HTML Language Server",
        command="vscode-html-language-server",
        args=("--stdio",),
        extensions=(".html", ".htm"),
        install_hint="npm install -g vscode-langservers-extracted",
    ),
    LSPServerSpec(
        key="css",
        name="CSS Language Server",
        command="vscode-css-language-server",
        args=("--stdio",),
        extensions=(".css", ".scss", ".less"),
        install_hint="npm install -g vscode-langservers-extracted",
    ),
    LSPServerSpec(
        key="yaml",
        name="YAML Language Server",
        command="yaml-language-server",
        args=("--stdio",),
        extensions=(".yaml", ".yml"),
        install_hint="npm install -g yaml-language-server",
    ),
    LSPServerSpec(
        key="ruby",
        name="Solargraph",
        command="solargraph",
        args=("stdio",),
        extensions=(".rb", ".rake", ".gemspec"),
        install_hint="gem install solargraph",
    ),
    LSPServerSpec(
        key="php",
        name="Intelephense",
        command="intelephense",
        args=("--stdio",),
        extensions=(".php", ".phtml"),
        install_hint="npm install -g intelephense",
    ),
    LSPServerSpec(
        key="lua",
        name="Lua Language Server",
        command="lua-language-server",
        extensions=(".lua",),
        install_hint="brew install lua-language-server (or see https://github.com/LuaLS/lua-language-server)",
    ),
    LSPServerSpec(
        key="bash",
        name="Bash Language Server",
        command="bash-language-server",
        args=("start",),
        extensions=(".sh", ".bash", ".zsh"),
        install_hint="npm install -g bash-language-server",
    ),
    LSPServerSpec(
        key="elixir",
        name="Elixir LS",
        command="elixir-ls",
        extensions=(".ex", ".exs"),
        install_hint="See https://github.com/elixir-lsp/elixir-ls",
    ),
    LSPServerSpec(
        key="kotlin",
        name="Kotlin Language Server",
        command="kotlin-language-server",
        extensions=(".kt", ".kts"),
        install_hint="See https://github.com/fwcd/kotlin-language-server",
    ),
    LSPServerSpec(
        key="swift",
        name="SourceKit-LSP",
        command="sourcekit-lsp",
        extensions=(".swift",),
        install_hint="Included with Xcode or Swift toolchain",
    ),
    LSPServerSpec(
        key="csharp",
        name="OmniSharp / csharp-ls",
        command="omnisharp",
        args=("-lsp",),
        extensions=(".cs",),
        install_hint="dotnet tool install --global csharp-ls",
    ),
    LSPServerSpec(
        key="scala",
        name="Metals",
        command="metals",
        extensions=(".scala", ".sc", ".sbt"),
        install_hint="cs install metals (requires Coursier)",
    ),
    LSPServerSpec(
        key="zig",
        name="ZLS",
        command="zls",
        extensions=(".zig",),
        install_hint="See https://github.com/zigtools/zls",
    ),
    LSPServerSpec(
        key="haskell",
        name="Haskell Language Server",
        command="haskell-language-server-wrapper",
        args=("--lsp",),
        extensions=(".hs", ".lhs"),
        install_hint="ghcup install hls",
    ),
)

# Common language names mapped to registry keys
LANGUAGE_ALIASES: dict[str, str] = {
    "javascript": "typescript",
    "typescript": "typescript",
    "tsx": "typescript",
    "jsx": "typescript",
    "python": "python",
    "rust": "rust",
    "go": "go",
    "golang": "go",
    "c": "c",
    "cpp": "c",
    "c++": "c",
    "java": "java",
    "json": "json",
    "html": "html",
    "css": "css",
    "scss": "css",
    "less": "css",
    "yaml": "yaml",
    "ruby": "ruby",
    "php": "php",
    "lua": "lua",
    "bash": "bash",
    "shell": "bash",
    "sh": "bash",
    "shellscript": "bash",
    "elixir": "elixir",
    "kotlin": "kotlin",
    "swift": "swift",
    "csharp": "csharp",
    "c#": "csharp",
    "scala": "scala",
    "zig": "zig",
    "haskell": "haskell",
    "hs": "haskell",
}

# languageId values sent with textDocument/didOpen where they differ from the key
_LANGUAGE_IDS: dict[str, str] = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".tsx": "typescriptreact",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hxx": "cpp",
    ".scss": "scss",
    ".less": "less",
    ".sh": "shellscript",
    ".bash": "shellscript",
    ".zsh": "shellscript",
}


class LSPServerRegistry:
    """Known language servers, keyed by a short logical name."""

    def __init__(self, servers: Iterable[LSPServerSpec] = BUILTIN_SERVERS) -> None:
        self._servers: dict[str, LSPServerSpec] = {}
        for spec in servers:
            self.register(spec)

    @classmethod
    def from_config(cls, overrides: Iterable[LSPServerConfig]) -> LSPServerRegistry:
        registry = cls()
        for override in overrides:
            if not override.enabled:
                registry.unregister(override.name)
                continue
            existing = registry.get_server(override.name)
            registry.register(
                LSPServerSpec(
                    key=override.name,
                    name=existing.name if existing else override.name,
                    command=override.command or (existing.command if existing else override.name),
                    args=tuple(override.args) if override.args or not existing else existing.args,
                    extensions=(
                        tuple(override.extensions)
                        if override.extensions or not existing
                        else existing.extensions
                    ),
                    install_hint=override.install_hint
                    or (existing.install_hint if existing else ""),
                )
            )
        return registry

    def register(self, spec: LSPServerSpec) -> None:
        self._servers[spec.key] = spec

    def unregister(self, key: str) -> None:
        self._servers.pop(key, None)

    def get_server(self, key: str) -> LSPServerSpec | None:
        return self._servers.get(key)

    def get_server_for_file(self, file_path: Path | str) -> LSPServerSpec | None:
        extension = Path(file_path).suffix.lower()
        if not extension:
            return None
        for spec in self._servers.values():
            if extension in spec.extensions:
                return spec
        return None

    def get_server_for_language(self, language: str) -> LSPServerSpec | None:
        key = LANGUAGE_ALIASES.get(language.lower())
        if key is None:
            return None
        return self._servers.get(key)

    def all_extensions(self) -> list[str]:
        return list(
            dict.fromkeys(ext for spec in self._servers.values() for ext in spec.extensions)
        )

    def all_servers(self) -> list[LSPServerStatus]:
        return [
            LSPServerStatus(spec=spec, installed=command_exists(spec.command))
            for spec in self._servers.values()
        ]

    def __iter__(self) -> Iterator[LSPServerSpec]:
        return iter(self._servers.values())

    def __len__(self) -> int:
        return len(self._servers)


def language_id_for_file(file_path: Path, spec: LSPServerSpec) -> str:
    return _LANGUAGE_IDS.get(file_path.suffix.lower(), spec.key)
