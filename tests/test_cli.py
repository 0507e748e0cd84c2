import json

from object_locator import cli

SCENARIO = {
    "dims": [320, 240],
    "seed": 3,
    "params": {"noise_width": 0.0},
    "slots": {"a": [40, 40, 16, 16], "b": [200, 150, 16, 16]},
    "cycles": [
        {"candidates": [[42, 41, 16, 16], [203, 149, 16, 16]]},
        {"candidates": [[44, 42, 16, 16], [206, 148, 16, 16]], "saccading": True},
        {"candidates": [[46, 43, 16, 16]], "gaze": [60, 60]},
    ],
}


def test_run_scenario_feeds_matches_forward():
    outputs, locator, result, priors = cli.run_scenario(SCENARIO)
    assert outputs[0] == {"a": [42, 41, 16, 16], "b": [203, 149, 16, 16]}
    # saccade: last known regions echoed
    assert outputs[1] == outputs[0]
    assert outputs[2]["a"] == [46, 43, 16, 16]
    assert outputs[2]["b"] is None
    assert priors["b"].region.as_xywh() == (203, 149, 16, 16)
    assert result.suppression_map.shape == (240, 320)


def test_main_writes_json_and_image(tmp_path, monkeypatch):
    path = tmp_path / "walk.json"
    path.write_text(json.dumps(SCENARIO), encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    cli.main(["prog", str(path)])

    out = json.loads((tmp_path / "outputs" / "walk.json").read_text(encoding="utf-8"))
    assert len(out["cycles"]) == 3
    assert out["params"]["noise_width"] == 0.0
    assert out["params"]["matching"] == "suppression"
    assert (tmp_path / "outputs" / "walk.png").exists()
