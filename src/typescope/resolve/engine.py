"""Resolution engine: cached package resolution, the object index, and queries.

One engine owns one session. Every import path is located, loaded and
checked at most once; the result (a package, None for an absent package,
or the error it failed with) is cached for the life of the engine.

Resolving ``import_path``:

1. Cache hit: return (or re-raise) the cached result.
2. Locate it with the provenance resolver. Not found: None, or
   PACKAGE_NOT_FOUND when ``missing_is_error`` is set.
3. System packages go to the system importer and are not indexed.
4. User and vendored packages are loaded from source and handed to the
   checker, which calls back into ``import_from`` for their imports.
5. Check errors go to ``on_error``. Hard errors fail the package unless
   ``allow_hard_errors`` is set.
6. Package-scope definitions of named types are merged into the index,
   all or nothing.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from typescope.config.models import ResolveConfig
from typescope.core.errors import InternalError, ResolveError
from typescope.core.logging import get_logger
from typescope.names import TypeName, parse_type_name
from typescope.resolve._internal.checker import AnnotationChecker
from typescope.resolve._internal.docs import comment_doc, definition_doc
from typescope.resolve._internal.loader import SourceSet, is_test_file, load_package
from typescope.resolve._internal.parsing import PythonParser
from typescope.resolve._internal.provenance import ProvenanceResolver
from typescope.resolve._internal.system import SystemImporter
from typescope.resolve.models import (
    CheckError,
    Checker,
    Consts,
    ConstValue,
    Definition,
    Implementer,
    ObjectKind,
    Package,
    PackageKind,
    ResolveStats,
)
from typescope.types import Interface, Named, Struct, Type, satisfying_form, type_name_of

log = get_logger(__name__)

ErrorHandler = Callable[[CheckError], None]


def _log_check_error(error: CheckError) -> None:
    log.warning(
        "type_check_error",
        import_path=error.import_path,
        severity=error.severity,
        file=error.file,
        line=error.line,
        message=error.message,
    )


class ResolutionEngine:
    """Resolves packages on demand and indexes their named types.

    Not thread-safe: use one engine per thread, or lock around every call.
    """

    def __init__(
        self,
        config: ResolveConfig | None = None,
        *,
        checker: Checker | None = None,
        system_importer: SystemImporter | None = None,
        parser: PythonParser | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self.config = config or ResolveConfig()
        self.checker: Checker = checker or AnnotationChecker()
        self.system_importer = system_importer or SystemImporter()
        self.parser = parser or PythonParser()
        self.on_error: ErrorHandler = on_error or _log_check_error

        self.provenance = ProvenanceResolver(
            self.config.workspace_root,
            self.config.system_root,
            vendor_dir_name=self.config.vendor_dir_name,
            vendor_paths=self.config.vendor_paths,
        )
        self.sources = SourceSet()
        self.objects: dict[TypeName, Definition] = {}
        self.stats = ResolveStats()

        self._packages: dict[str, Package | None] = {}
        self._failures: dict[str, ResolveError] = {}
        self._kinds: dict[str, PackageKind] = {}
        self._in_progress: list[str] = []

    # Resolution

    def resolve(self, import_path: str) -> Package | None:
        """Resolve ``import_path`` as imported from the workspace root."""
        return self.import_from(import_path, self.config.workspace_root)

    def import_from(self, import_path: str, src_dir: Path | None = None) -> Package | None:
        """Resolve ``import_path`` as imported by a file in ``src_dir``.

        Returns:
            The checked package, or None if it cannot be found.

        Raises:
            ResolveError: The package failed to load, failed a strict type
                check, could not be imported as a system package, or is
                already being resolved further up the stack (IMPORT_CYCLE).
                Failures are cached and raised again on every later call.
            InternalError: Indexing the package would duplicate an entry.
        """
        failure = self._failures.get(import_path)
        if failure is not None:
            self.stats.cache_hits += 1
            raise failure
        if import_path in self._packages:
            self.stats.cache_hits += 1
            return self._packages[import_path]

        if import_path in self._in_progress:
            start = self._in_progress.index(import_path)
            raise ResolveError.import_cycle(import_path, [*self._in_progress[start:], import_path])

        self._in_progress.append(import_path)
        try:
            package = self._resolve_uncached(import_path, src_dir)
        except ResolveError as e:
            self._failures[import_path] = e
            raise
        finally:
            self._in_progress.pop()

        self._packages[import_path] = package
        return package

    def _resolve_uncached(self, import_path: str, src_dir: Path | None) -> Package | None:
        origin = src_dir or self.config.workspace_root
        self.stats.provenance_lookups += 1
        kind, path = self.provenance.resolve(import_path, origin)
        self._kinds[import_path] = kind

        if kind is PackageKind.NONE:
            log.info("package_not_found", import_path=import_path, origin=str(origin))
            if self.config.missing_is_error:
                raise ResolveError.package_not_found(import_path, str(origin))
            return None

        if kind is PackageKind.SYSTEM:
            self.stats.system_imports += 1
            package = self.system_importer.import_package(import_path, path)
            log.debug("package_resolved", import_path=import_path, kind=kind.value)
            return package

        assert path is not None
        self.stats.loads += 1
        loaded = load_package(path, import_path, self.parser)
        self.sources.add(loaded)

        files = [
            name
            for name in loaded.file_names
            if self.config.include_tests or not is_test_file(name)
        ]
        package = Package(import_path=import_path, kind=kind, directory=path)

        self.stats.checks += 1
        result = self.checker.check(package, loaded, files, self)
        for error in result.errors:
            self.on_error(error)

        hard = result.hard_errors
        if hard and not self.config.allow_hard_errors:
            raise ResolveError.type_check_failed(import_path, str(hard[0]))
        if result.errors:
            log.info(
                "type_check_recovered",
                import_path=import_path,
                soft_errors=len(result.soft_errors),
                hard_errors=len(hard),
            )

        self._index_package(result.package)
        log.debug(
            "package_resolved",
            import_path=import_path,
            kind=kind.value,
            files=len(files),
            definitions=len(result.package.scope),
        )
        return result.package

    def _index_package(self, package: Package) -> None:
        staged: dict[TypeName, Definition] = {}
        for definition in package.scope.values():
            if not isinstance(definition.type, Named):
                continue
            if definition.name in self.objects or definition.name in staged:
                raise InternalError.duplicate_definition(package.import_path, definition.name.full)
            staged[definition.name] = definition
        self.objects.update(staged)

    # Package queries

    def packages(self) -> dict[str, Package]:
        """Every package resolved so far, absent ones excluded."""
        return {path: pkg for path, pkg in self._packages.items() if pkg is not None}

    def package_kind(self, import_path: str) -> PackageKind:
        return self._kinds.get(import_path, PackageKind.NONE)

    def file_package(self, file: Path) -> tuple[PackageKind, str]:
        return self.provenance.file_package(file)

    def import_named(self, typ: Type) -> Package | None:
        """Resolve the package that declares ``typ``."""
        if not isinstance(typ, Named):
            raise ResolveError.not_a_named_type(str(typ), type(typ).__name__)
        return self.resolve(typ.name.package_path)

    def find_import_path(self, pkg: str, type_name: str) -> str:
        """Fully-qualified name for ``type_name`` as written in package ``pkg``.

        ``Name`` is local to ``pkg``; ``mod.Name`` is looked up among the
        modules ``pkg`` imports, by last path segment.
        """
        package = self.resolve(pkg)
        if package is None:
            raise ResolveError.package_not_found(pkg, str(self.config.workspace_root))

        head, sep, rest = type_name.partition(".")
        if not sep:
            return f"{pkg}.{type_name}"
        for path in sorted(package.imports):
            if path.rsplit(".", 1)[-1] == head:
                return f"{path}.{rest}"
        raise ResolveError.object_not_found(f"{type_name} (imported by {pkg})")

    def local_package(self, import_path: str) -> str:
        """Name that package ``import_path`` is referred to by: its last segment."""
        package = self._packages.get(import_path)
        if package is None:
            raise ResolveError.package_not_found(import_path, "resolved packages")
        return package.name

    def local_package_from_type(self, name: TypeName) -> str:
        return self.local_package(name.package_path)

    def local_import_name(self, name: TypeName, rel_pkg: str) -> str:
        """``name`` as written from inside package ``rel_pkg``.

        Both packages must already be resolved.
        """
        if name.is_builtin:
            return name.name
        local = self.local_package(name.package_path)
        self.local_package(rel_pkg)
        if name.package_path == rel_pkg:
            return name.name
        return f"{local}.{name.name}"

    # Object queries

    def find_object(self, name: TypeName) -> Definition | None:
        """Look up ``name`` among resolved packages, without resolving anything."""
        definition = self.objects.get(name)
        if definition is not None:
            return definition
        package = self._packages.get(name.package_path)
        if package is None:
            return None
        return package.lookup(name.name)

    def find_object_by_name(self, name: str) -> Definition | None:
        return self.find_object(parse_type_name(name))

    def find_import_object(self, name: TypeName) -> Definition | None:
        """Resolve ``name``'s package, then look ``name`` up."""
        self.resolve(name.package_path)
        return self.find_object(name)

    def find_import_object_by_name(self, name: str) -> Definition | None:
        return self.find_import_object(parse_type_name(name))

    def must_find_object(self, name: TypeName) -> Definition:
        definition = self.find_object(name)
        if definition is None:
            raise ResolveError.object_not_found(name.full)
        return definition

    def must_find_object_by_name(self, name: str) -> Definition:
        return self.must_find_object(parse_type_name(name))

    def must_find_import_object(self, name: TypeName) -> Definition:
        definition = self.find_import_object(name)
        if definition is None:
            raise ResolveError.object_not_found(name.full)
        return definition

    def must_find_import_object_by_name(self, name: str) -> Definition:
        return self.must_find_import_object(parse_type_name(name))

    def find_implementers(self, iface: TypeName) -> dict[TypeName, Implementer]:
        """Every indexed type that satisfies the protocol ``iface``.

        A type qualifies if its instances conform, or failing that if the
        class object itself does. Protocols are never implementers.
        """
        if iface.package_path not in self._packages:
            self.resolve(iface.package_path)

        definition = self.objects.get(iface)
        if definition is None:
            raise ResolveError.object_not_found(iface.full)
        iface_type = definition.type
        if not isinstance(iface_type, Named) or not iface_type.is_protocol:
            raise ResolveError.not_an_interface(iface.full)

        implementers: dict[TypeName, Implementer] = {}
        for name, candidate in self.objects.items():
            if candidate.kind is not ObjectKind.TYPE:
                continue
            typ = candidate.type
            if not isinstance(typ, Named) or typ == iface_type or typ.is_protocol:
                continue
            form = satisfying_form(typ, iface_type)
            if form is not None:
                implementers[name] = Implementer(typ, form)
        return implementers

    def extract_consts(self, name: TypeName, include_unexported: bool = False) -> Consts:
        """Constants in ``name``'s package declared with exactly type ``name``.

        The group is an enum if the type has the configured marker method,
        taking no arguments and returning nothing.
        """
        definition = self.objects.get(name)
        if definition is None:
            raise ResolveError.object_not_found(name.full)
        typ = definition.type
        if not isinstance(typ, Named):
            raise ResolveError.not_a_named_type(name.full, type(typ).__name__)

        marker = typ.methods.get(self.config.enum_marker)
        consts = Consts(
            type=name,
            underlying=type_name_of(typ.underlying),
            is_enum=marker is not None and not marker.params and not marker.has_result,
        )

        package = self._packages.get(name.package_path)
        if package is None:
            return consts
        for candidate in package.scope.values():
            if candidate.kind is not ObjectKind.CONST or type_name_of(candidate.type) != name:
                continue
            if not include_unexported and not candidate.is_exported:
                continue
            consts.values.append(ConstValue(name=candidate.name, value=candidate.value))
        return consts

    # Source and docs

    def extract_source(self, name: TypeName) -> bytes:
        """Source bytes of ``name``'s declaration statement."""
        definition = self.must_find_object(name)
        if not definition.has_source:
            raise ResolveError.source_unavailable(name.full, "no recorded position")
        assert definition.file is not None
        source = self.sources.source(
            name.package_path, definition.file, definition.start_byte, definition.end_byte
        )
        if source is None:
            raise ResolveError.source_unavailable(name.full, "package was not loaded from source")
        return source

    def type_doc(self, name: TypeName) -> str | None:
        """Docstring of a class, or the comments documenting any other definition."""
        definition = self.must_find_object(name)
        if not definition.has_source:
            raise ResolveError.source_unavailable(name.full, "no recorded position")
        assert definition.file is not None
        node = self.sources.node_at(
            name.package_path, definition.file, definition.start_byte, definition.end_byte
        )
        if node is None:
            raise ResolveError.source_unavailable(name.full, "declaration not found")
        return definition_doc(node)

    def field_doc(self, name: TypeName, field_name: str) -> str | None:
        """Comments documenting one field of a class. None if there is no such field."""
        definition = self.must_find_object(name)
        where = f"{name.full}.{field_name}"
        shape = definition.type.underlying if isinstance(definition.type, Named) else definition.type
        if isinstance(shape, Struct):
            fields = shape.fields
        elif isinstance(shape, Interface):
            fields = shape.attributes
        else:
            raise ResolveError.source_unavailable(where, f"{name.full} is not a struct")

        field = next((f for f in fields if f.name == field_name), None)
        if field is None:
            return None
        if field.file is None or field.package_path is None:
            raise ResolveError.source_unavailable(where, "no recorded position")
        node = self.sources.node_at(field.package_path, field.file, field.start_byte, field.end_byte)
        if node is None:
            raise ResolveError.source_unavailable(where, "declaration not found")
        return comment_doc(node)
