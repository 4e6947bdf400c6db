"""
Shared fixtures: a small controller/service program with markers, call edges and LOC maps.
"""

import pytest

from feature_loc.core.call_graph import CallGraphView
from feature_loc.core.catalog import ConfigCatalog
from feature_loc.core.models import SymbolUniverse


CONTROLLER = "com.example.web.UserController"
SERVICE = "com.example.service.UserService"
REPOSITORY = "com.example.repo.UserRepository"


@pytest.fixture
def universe():
    u = SymbolUniverse()
    u.add_class(CONTROLLER, ["RestController"])
    u.add_method(CONTROLLER, "getUser", ["GetMapping"])
    u.add_method(CONTROLLER, "createUser", ["PostMapping"])
    u.add_method(CONTROLLER, "helper")
    u.add_class(SERVICE, ["Service"])
    u.add_method(SERVICE, "find")
    u.add_method(SERVICE, "save")
    u.add_class(REPOSITORY)
    u.add_method(REPOSITORY, "load")
    return u


@pytest.fixture
def edges():
    return [
        (f"{CONTROLLER}#getUser", f"{SERVICE}#find"),
        (f"{CONTROLLER}#createUser", f"{SERVICE}#save"),
        (f"{SERVICE}#find", f"{REPOSITORY}#load"),
        (f"{SERVICE}#save", f"{REPOSITORY}#load"),
        (f"{SERVICE}#find", "java.util.List#get"),
    ]


@pytest.fixture
def graph(edges):
    return CallGraphView(edges, noise_prefixes=["java."])


@pytest.fixture
def function_loc():
    return {
        f"{CONTROLLER}#getUser": 10,
        f"{CONTROLLER}#createUser": 12,
        f"{SERVICE}#find": 5,
        f"{SERVICE}#save": 7,
        f"{REPOSITORY}#load": 3,
    }


@pytest.fixture
def class_loc():
    return {CONTROLLER: 40, SERVICE: 30, REPOSITORY: 20}


@pytest.fixture
def web_catalog():
    return ConfigCatalog.from_document({
        "annotation-config": {
            "class-level-annotations": ["RestController"],
            "method-level-annotations": [
                {"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval"},
                {"annotation": "PostMapping", "feature-pattern": "{controller}-creation"},
            ],
        }
    })
