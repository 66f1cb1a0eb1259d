"""Tests for ModuleCatalog."""

from pathlib import Path

from wire_modules import Module
from wire_modules import ModuleCatalog
from wire_modules import ModuleInfo
from wire_modules import ModuleRegistry
from wire_modules import ModulesConfig


class Greeter(Module):
    module_info = {"title": "Greeter", "version": "1.2.0", "singular": True}

    def __init__(self):
        super().__init__()
        self.initialized = False

    def init(self):
        self.initialized = True


class Lazy(Module):
    module_info = {"version": 100}

    def is_autoload(self):
        return True


def make_catalog(*classes, installed=(), **config):
    catalog = ModuleCatalog(config=ModulesConfig(**config))
    for cls in classes:
        catalog.register(cls)
    for name in installed:
        catalog.registry.add_entry(name)
    catalog.refresh()
    return catalog


def test_registered_module_is_installable():
    catalog = make_catalog(Greeter)

    assert catalog.installable_file("Greeter") == Path(__file__)
    assert "Greeter" in catalog.get_installable()
    assert not catalog.is_installed("Greeter")
    assert catalog.module_names() == ["Greeter"]


def test_installed_module_leaves_installable_index():
    catalog = make_catalog(Greeter, installed=["Greeter"])

    assert catalog.installable_file("Greeter") is None
    assert catalog.is_installed("Greeter")
    assert catalog.get_module_id("Greeter") == 1


def test_is_installed_with_version_requirement():
    catalog = make_catalog(Greeter, installed=["Greeter"])

    assert catalog.is_installed("Greeter>=1.0.0")
    assert catalog.is_installed("Greeter=1.2.0")
    assert not catalog.is_installed("Greeter>=2.0.0")


def test_is_installed_with_pre_release_requirement():
    catalog = make_catalog(Greeter, installed=["Greeter"])

    assert catalog.is_installed("Greeter>=1.2.0-beta")
    assert not catalog.is_installed("Greeter>=1.3.0-beta")
    assert not catalog.is_installed("Missing>=1.0.0-beta")


def test_pseudo_modules_are_installed():
    catalog = make_catalog(system_version="3.0.229", php_version="8.2.0")

    assert catalog.is_installed("ProcessWire")
    assert catalog.is_installed("PHP>=8.0.0")
    assert not catalog.is_installed("ProcessWire>=3.1.0")
    assert catalog.get_module_info("PHP").version == "8.2.0"
    assert catalog.runtime_version("Greeter") is None


def test_get_module_info():
    catalog = make_catalog(Greeter)

    info = catalog.get_module_info("Greeter")

    assert isinstance(info, ModuleInfo)
    assert info.version == "1.2.0"
    assert info.singular is True
    assert catalog.get_module_info("Greeter") is info  # cached
    assert catalog.get_module_info("Greeter", no_cache=True) is not info


def test_unknown_module_info_is_empty():
    catalog = make_catalog()

    info = catalog.get_module_info("Missing")

    assert info.name == "Missing"
    assert info.requires == []
    assert catalog.get_module_class("Missing") is None
    assert catalog.new_module("Missing") is None


def test_new_module_is_attached_to_hooks():
    catalog = make_catalog(Greeter)

    module = catalog.new_module("Greeter")

    assert isinstance(module, Greeter)
    assert module.hooks is catalog.hooks
    assert module.initialized is False


def test_get_module_only_for_installed():
    catalog = make_catalog(Greeter)
    assert catalog.get_module("Greeter") is None

    catalog.registry.add_entry("Greeter")
    module = catalog.get_module("Greeter")

    assert module.initialized is True
    assert catalog.get_module("Greeter") is module


def test_get_module_without_init():
    catalog = make_catalog(Greeter, installed=["Greeter"])

    module = catalog.get_module("Greeter", no_init=True)

    assert module.initialized is False


def test_singular_and_autoload():
    catalog = make_catalog(Greeter, Lazy)

    assert catalog.is_singular(catalog.new_module("Greeter")) is True
    assert catalog.is_autoload(catalog.new_module("Greeter")) is False
    assert catalog.is_singular(catalog.new_module("Lazy")) is False
    assert catalog.is_autoload(catalog.new_module("Lazy")) is True


def test_catalog_discovers_module_files(tmp_path):
    modules = tmp_path / "site" / "modules"
    (modules / "Hello").mkdir(parents=True)
    (modules / "Hello" / "Hello.module.py").write_text(
        "from wire_modules import Module\n\n\nclass Hello(Module):\n    module_info = {'version': '2.0.0'}\n"
    )

    catalog = ModuleCatalog.from_config(ModulesConfig(module_paths=[modules]))

    assert catalog.installable_file("Hello") == modules / "Hello" / "Hello.module.py"
    assert catalog.get_module_info("Hello").version == "2.0.0"


def test_refresh_follows_registry(tmp_path):
    registry = ModuleRegistry(path=tmp_path / "modules.json")
    catalog = ModuleCatalog(registry=registry)
    catalog.register(Greeter)

    registry.add_entry("Greeter")
    catalog.refresh()
    assert catalog.installable_file("Greeter") is None

    registry.remove_entry("Greeter")
    catalog.refresh()
    assert catalog.installable_file("Greeter") is not None


def test_forget_file(tmp_path):
    modules = tmp_path / "modules"
    modules.mkdir()
    (modules / "Hello.module.py").write_text("from wire_modules import Module\n\n\nclass Hello(Module):\n    pass\n")
    catalog = ModuleCatalog(config=ModulesConfig(module_paths=[modules]))

    catalog.forget_file("Hello")

    assert "Hello" not in catalog.files
    assert catalog.installable_file("Hello") is None
