"""Tests for Field status and lifecycle."""

from formstate import FieldSpec, Form, Rule, autorun


def required(value, name, form):
    return bool(value) or f"{name} is required"


class TestFieldSpec:
    def test_bare_value(self):
        assert FieldSpec.from_entry("x") == FieldSpec("x", None)

    def test_descriptor(self):
        assert FieldSpec.from_entry({"value": "x", "rules": [required]}) == FieldSpec("x", [required])
        assert FieldSpec.from_entry({"value": 0}) == FieldSpec(0, None)

    def test_any_mapping_with_value_is_a_descriptor(self):
        entry = {"value": "x", "label": "Email", "rules": [required]}
        assert FieldSpec.from_entry(entry) == FieldSpec("x", [required])

    def test_mapping_without_value_is_a_value(self):
        address = {"street": "Main", "rules": []}
        assert FieldSpec.from_entry(address) == FieldSpec(address)


class TestFieldConstruction:
    def test_initial_status(self):
        form = Form({"email": {"value": "a@b.c", "rules": [required]}})
        field = form["email"]
        assert field.name == "email"
        assert field.value == "a@b.c"
        assert field.dirty is False
        assert field.touched is False
        assert field.focused is False
        assert field.pending is False
        assert field.valid is True
        assert field.errors == []
        assert field.error is None
        assert field.rules == [Rule(required)]

    def test_bare_and_descriptor_shapes_match(self):
        form = Form({"a": 5, "b": {"value": 5}})
        assert form["a"].value == form["b"].value
        assert form["a"].rules == form["b"].rules == []


class TestFieldInteraction:
    def test_focus(self):
        form = Form({"email": ""})
        form["email"].focus()
        assert form["email"].focused is True
        assert form.touched is False

    def test_blur(self):
        form = Form({"email": ""})
        form["email"].focus(object())
        form["email"].blur(object())
        assert form["email"].focused is False
        assert form["email"].touched is True
        assert form.touched is True

    def test_assignment_marks_dirty(self):
        form = Form({"email": "", "name": ""})
        form["email"].value = "a@b.c"
        assert form["email"].dirty is True
        assert form["name"].dirty is False
        assert form.dirty is True

    def test_assignment_validates(self):
        form = Form({"email": {"value": "x", "rules": [required]}})
        form["email"].value = ""
        assert form["email"].valid is False
        assert form["email"].errors == ["email is required"]
        assert form["email"].error == "email is required"
        assert form["email"].pending is False

    def test_in_place_mutation_counts_as_change(self):
        form = Form({"tags": {"value": ["a"], "rules": [lambda v, n, f: len(v) <= 1 or "too many"]}})
        tags = form["tags"].value
        tags.append("b")
        form["tags"].value = tags
        assert form["tags"].dirty is True
        assert form["tags"].errors == ["too many"]

    def test_status_is_observable(self):
        form = Form({"email": ""})
        log = []
        autorun(lambda: log.append(form["email"].dirty))
        form["email"].value = "a@b.c"
        assert log == [False, True]

    def test_rules_setter_normalizes(self):
        form = Form({"email": ""})
        form["email"].rules = required
        assert form["email"].rules == [Rule(required)]
        form["email"].rules = [{"rule": required, "autoValidate": False}]
        assert form["email"].rules == [Rule(required, False)]


class TestFieldReset:
    def _form(self):
        return Form(
            {
                "email": {"value": "", "rules": [required]},
                "name": {"value": "", "rules": [required]},
            }
        )

    def _invalidate(self, field):
        field.value = "x"
        field.value = ""

    def test_restores_initial_state(self):
        form = self._form()
        field = form["email"]
        field.focus()
        field.blur()
        self._invalidate(field)
        field.focus()
        assert field.valid is False

        field.reset()

        assert field.value == ""
        assert field.dirty is False
        assert field.touched is False
        assert field.focused is False
        assert field.valid is True
        assert field.errors == []
        assert field.name == "email"

    def test_restores_mutated_containers(self):
        form = Form({"tags": ["a"]})
        form["tags"].value.append("b")
        form["tags"].reset()
        assert form["tags"].value == ["a"]

    def test_reaggregates_form_errors(self):
        form = self._form()
        self._invalidate(form["email"])
        self._invalidate(form["name"])
        assert form.errors == ["email is required", "name is required"]

        form["email"].reset()

        assert form.errors == ["name is required"]
        assert form.error_fields == {"name": ["name is required"]}
        assert form.valid is False

    def test_tracking_resumes_after_reset(self):
        form = self._form()
        field = form["email"]
        self._invalidate(field)
        field.reset()
        assert field.dirty is False

        field.value = "a@b.c"
        assert field.dirty is True
        field.value = ""
        assert field.errors == ["email is required"]
