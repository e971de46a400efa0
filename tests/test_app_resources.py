"""Tests for resource declaration and the FIFO handler queue."""

from unittest.mock import MagicMock

import pytest
from stacklayer.core.errors import (
    ConfigShapeError,
    HandlerExecutionError,
    ProgramStateError,
    ResourceConstructionError,
)
from stacklayer.program import AppResource, Output
from stacklayer.providers import ConstructorRegistry, ProviderInstance


class TestAddResource:
    """Test recording of resources."""

    def test_returns_handle_without_constructing(self, make_app, provider):
        app = make_app()
        bucket = app.add_resource(provider.resource("bucket"), name="files", config={"acl": "private"})

        assert isinstance(bucket, AppResource)
        assert bucket.name == "files"
        assert bucket.type == "bucket"
        assert bucket.output.is_pending
        assert provider.created == []
        assert app.handlers.labels() == ["files"]

    def test_opts_passed_through(self, make_app, provider):
        app = make_app()
        app.add_resource(provider.resource("table"), name="db", config={}, opts={"protect": True})
        assert app.handlers[0].kind == "resource"

    def test_config_defaults_to_empty_record(self, make_app, provider):
        app = make_app()
        resource = app.add_resource(provider.resource("queue"), name="jobs")
        with pytest.raises(ConfigShapeError):
            resource.config.visibility_timeout(30)

    def test_declared_shape_rejects_unknown_initial_fields(self, make_app, provider):
        """Constructors that declare config_fields validate the initial config."""
        app = make_app()
        ctor = provider.resource("bucket", fields=["acl", "tags"])
        with pytest.raises(ConfigShapeError) as exc_info:
            app.add_resource(ctor, name="files", config={"acl": "private", "colour": "red"})
        assert exc_info.value.details["fields"] == ["colour"]

    def test_declared_shape_allows_setting_absent_fields(self, make_app, provider):
        app = make_app()
        ctor = provider.resource("bucket", fields=["acl", "tags"])
        bucket = app.add_resource(ctor, name="files", config={"acl": "private"})
        bucket.config.tags({"team": "web"})

    def test_constructor_by_registered_name(self, make_app, provider):
        registry = ConstructorRegistry()
        registry.register("memory:bucket", provider.resource("bucket"))
        app = make_app(registry=registry)
        bucket = app.add_resource("memory:bucket", name="files")
        assert bucket.type == "bucket"

    def test_add_after_run_raises(self, make_app, provider):
        import asyncio

        app = make_app()
        asyncio.run(app.run_program())
        with pytest.raises(ProgramStateError):
            app.add_resource(provider.resource("bucket"), name="late")


class TestDrain:
    """Test handler execution during run_program."""

    @pytest.mark.asyncio
    async def test_constructor_receives_final_config(self, make_app, provider):
        """Mutations between declaration and drain are honored."""

        def program(app):
            resource = app.add_resource(provider.resource("disk"), name="A", config={"size": 1})
            resource.config.size(lambda v: v * 10)

        await make_app(program).run_program()

        assert provider.get("A").config == {"size": 10}

    @pytest.mark.asyncio
    async def test_handlers_drain_in_declaration_order(self, make_app):
        """Constructors run A, B, C even when B depends on A's output."""
        calls = []

        def ctor(name, config, opts):
            calls.append((name, dict(config)))
            return ProviderInstance(name=name, type="thing", id=f"id-{name}", config=config)

        def program(app):
            a = app.add_resource(ctor, name="A", config={})
            app.add_resource(ctor, name="B", config={"parent": a.output.map(lambda i: i.id)})
            app.add_resource(ctor, name="C", config={})

        await make_app(program).run_program()

        assert [name for name, _ in calls] == ["A", "B", "C"]
        assert calls[1][1] == {"parent": "id-A"}

    @pytest.mark.asyncio
    async def test_transform_reads_value_produced_by_earlier_resource(self, make_app, provider):
        """A transform on a nested field sees the producer's id, not an Output."""

        def program(app):
            bucket = app.add_resource(provider.resource("bucket"), name="bucket")
            api = app.add_resource(
                provider.resource("function"),
                name="api",
                config={"env": {"BUCKET": bucket.output.map(lambda b: b.id)}},
            )
            api.config.env(lambda env: {**env, "BUCKET_ARN": "arn:" + env["BUCKET"]})

        await make_app(program).run_program()

        assert provider.get("api").config == {
            "env": {"BUCKET": "bucket-1", "BUCKET_ARN": "arn:bucket-1"}
        }

    @pytest.mark.asyncio
    async def test_resource_output_resolves_to_instance(self, make_app, provider):
        handles = {}

        def program(app):
            handles["bucket"] = app.add_resource(provider.resource("bucket"), name="files")

        await make_app(program).run_program()

        instance = handles["bucket"].output.get()
        assert instance is provider.get("files")
        assert instance.id == "bucket-1"

    @pytest.mark.asyncio
    async def test_forward_reference_passed_as_pending_output(self, make_app):
        """A consumer declared before its producer receives a pending Output."""
        seen = {}

        def consumer(name, config, opts):
            seen["role"] = config["role"]
            return name

        def producer(name, config, opts):
            return "arn:role"

        def program(app):
            holder = Output("role")
            app.add_resource(consumer, name="fn", config={"role": holder})
            role = app.add_resource(producer, name="role")
            holder.resolve(role.output)

        await make_app(program).run_program()

        assert isinstance(seen["role"], Output)
        assert seen["role"].get() == "arn:role"

    @pytest.mark.asyncio
    async def test_async_constructor_is_awaited(self, make_app):
        async def ctor(name, config, opts):
            return {"name": name, **config}

        handles = {}

        def program(app):
            handles["r"] = app.add_resource(ctor, name="r", config={"x": 1})

        await make_app(program).run_program()

        assert handles["r"].output.get() == {"name": "r", "x": 1}

    @pytest.mark.asyncio
    async def test_constructor_failure_aborts_remaining_drain(self, make_app, provider):
        """A failure on B leaves A constructed and never reaches C."""
        handles = {}

        def program(app):
            handles["A"] = app.add_resource(provider.resource("disk"), name="A")
            handles["B"] = app.add_resource(
                provider.resource("disk", fail_with=RuntimeError("quota exceeded")), name="B"
            )
            handles["C"] = app.add_resource(provider.resource("disk"), name="C")

        app = make_app(program)
        with pytest.raises(ResourceConstructionError) as exc_info:
            await app.run_program()

        error = exc_info.value
        assert error.details["resource"] == "B"
        assert isinstance(error.original, RuntimeError)
        assert isinstance(error.__cause__, RuntimeError)
        assert provider.names() == ["A"]
        assert handles["A"].output.is_resolved
        assert handles["B"].output.is_rejected
        assert handles["C"].output.is_pending
        assert app.last_run.failed == "B"
        assert app.last_run.resources_created == ["A"]


class TestObservers:
    """Test the resource observer hook."""

    @pytest.mark.asyncio
    async def test_observer_sees_constructed_instance(self, make_app, provider):
        """Observers run after construction and before the output resolves."""
        handles = {}
        observed = []

        def observer(instance):
            assert isinstance(instance, ProviderInstance)
            observed.append((instance.name, handles["bucket"].output.is_pending))

        def program(app):
            app.on_resource(observer)
            handles["bucket"] = app.add_resource(provider.resource("bucket"), name="files")

        await make_app(program).run_program()

        assert observed == [("files", True)]

    @pytest.mark.asyncio
    async def test_every_observer_called_once_per_instance(self, make_app, provider):
        first = MagicMock()
        second = MagicMock()

        def program(app):
            app.on_resource(first)
            app.on_resource(second)
            app.add_resource(provider.resource("a"), name="a")
            app.add_resource(provider.resource("b"), name="b")

        await make_app(program).run_program()

        assert first.call_count == 2
        assert second.call_count == 2
        first.assert_any_call(provider.get("a"))

    @pytest.mark.asyncio
    async def test_observer_failure_aborts_drain(self, make_app, provider):
        def program(app):
            app.on_resource(MagicMock(side_effect=ValueError("bad tag")))
            app.add_resource(provider.resource("a"), name="a")

        with pytest.raises(ResourceConstructionError, match="observer"):
            await make_app(program).run_program()


class TestAddHandler:
    """Test arbitrary deferred handlers."""

    @pytest.mark.asyncio
    async def test_handler_result_becomes_output(self, make_app):
        results = {}

        def program(app):
            results["value"] = app.add_handler(lambda: 7 * 6)

        await make_app(program).run_program()

        assert results["value"].get() == 42

    @pytest.mark.asyncio
    async def test_handler_runs_between_resources_in_order(self, make_app, provider):
        order = []

        def program(app):
            app.add_resource(provider.resource("a"), name="a")
            app.add_handler(lambda: order.append(provider.names()[:]), name="snapshot")
            app.add_resource(provider.resource("b"), name="b")

        app = make_app(program)
        await app.run_program()

        assert order == [["a"]]
        assert app.last_run.handlers_run == ["snapshot"]

    @pytest.mark.asyncio
    async def test_async_handler_awaited(self, make_app, provider):
        results = {}

        def program(app):
            bucket = app.add_resource(provider.resource("bucket"), name="files")

            async def describe():
                instance = await bucket.output
                return f"s3://{instance.id}"

            results["url"] = app.add_handler(describe)

        await make_app(program).run_program()

        assert results["url"].get() == "s3://bucket-1"

    @pytest.mark.asyncio
    async def test_handler_failure_wrapped(self, make_app):
        def explode():
            raise KeyError("missing")

        def program(app):
            app.add_handler(explode)

        with pytest.raises(HandlerExecutionError) as exc_info:
            await make_app(program).run_program()
        assert exc_info.value.details["handler"] == "explode"

    @pytest.mark.asyncio
    async def test_handler_may_enqueue_more_work(self, make_app, provider):
        """Steps added during the drain run after the current tail."""

        def program(app):
            app.add_handler(
                lambda: app.add_resource(provider.resource("late"), name="late"), name="spawner"
            )
            app.add_resource(provider.resource("early"), name="early")

        await make_app(program).run_program()

        assert provider.names() == ["early", "late"]
