from pathlib import Path

from kusto_ormgen.shared.errors import (
    ConfigurationError,
    FilesystemError,
    MalformedFunctionSignature,
    OrmGenError,
    TransportError,
)


class TestOrmGenError:
    def test_init_no_database(self):
        error = OrmGenError("test message")
        assert str(error) == "test message"
        assert error.database is None

    def test_init_with_database(self):
        error = OrmGenError("test message", "Samples")
        assert str(error) == "[Samples] test message"
        assert error.database == "Samples"


class TestConfigurationError:
    def test_init_no_field(self):
        error = ConfigurationError("missing value")
        assert str(error) == "missing value"
        assert error.field is None

    def test_init_with_field(self):
        error = ConfigurationError("is required", "models_folder")
        assert str(error) == "Config 'models_folder': is required"
        assert error.field == "models_folder"

    def test_init_with_field_and_database(self):
        error = ConfigurationError("bad rule", "filters", "Samples")
        assert str(error) == "[Samples] Config 'filters': bad rule"
        assert isinstance(error, OrmGenError)


class TestTransportError:
    def test_init_with_query(self):
        error = TransportError("HTTP 500", "Samples", ".show schema")
        assert str(error) == "[Samples] HTTP 500 (query: .show schema)"
        assert error.query == ".show schema"

    def test_init_no_query(self):
        error = TransportError("Request timed out")
        assert str(error) == "Request timed out"
        assert error.query is None


class TestFilesystemError:
    def test_init(self):
        error = FilesystemError("Failed to write file", "out/Model.cs")
        assert str(error) == "Failed to write file: out/Model.cs"
        assert error.path == Path("out/Model.cs")


class TestMalformedFunctionSignature:
    def test_init(self):
        error = MalformedFunctionSignature("MyFn", "(a:int:x)", "Samples")
        assert str(error) == "[Samples] Cannot parse parameters '(a:int:x)' of function 'MyFn'"
        assert error.function_name == "MyFn"
        assert error.parameters == "(a:int:x)"
