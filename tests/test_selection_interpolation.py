# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from selection_actions.interpolation import (
    VariableState,
    interpolate_selection_batch,
    interpolate_selection_individual,
)


def test_individual_fills_index_count_and_variables():
    result = interpolate_selection_individual(
        "/alerts/${__data.fields.id}?env=$env&n=${__data.index}/${__data.count}",
        {"id": "7"},
        index=1,
        count=3,
        variable_state={"env": VariableState("prod")},
    )
    assert result.text == "/alerts/7?env=prod&n=1/3"
    assert result.errors is None


def test_errors_mention_selection_data():
    result = interpolate_selection_individual("${__data.fields.missing}", {"id": "7"}, 0, 1)
    assert result.errors == ['Field "missing" not found in selection data']

    batch = interpolate_selection_batch("${__data.fields.name}", [{"name": "a"}, {}])
    assert batch.errors == ['Field "name" not found in selection data at index 1']


def test_out_of_bounds_message_is_unchanged():
    result = interpolate_selection_batch('${__data[3].fields["name"]}', [{"name": "a"}])
    assert result.errors == ["Index 3 out of bounds (0-0)"]


def test_batch_with_variables():
    result = interpolate_selection_batch(
        "ids=${__data.fields.id:pipe}&by=$user",
        [{"id": "1"}, {"id": "2"}],
        variable_state={"user": VariableState("ops")},
    )
    assert result.text == "ids=1|2&by=ops"


def test_variables_are_left_alone_without_state():
    result = interpolate_selection_individual("$env/${__data.fields.id}", {"id": "1"}, 0, 1)
    assert result.text == "$env/1"
