import main
from utils import app_config


def test_folder_argument_is_remembered(tmp_path, monkeypatch):
    config = tmp_path / "config.json"
    monkeypatch.setattr(app_config, "CONFIG_FILE", config)
    folder = tmp_path / "data"

    main.main([str(folder)])
    assert (folder / "expenses.db").exists()
    assert app_config.get_db_folder(config) == str(folder)

    # Later runs reuse the saved folder
    (folder / "expenses.db").unlink()
    main.main([])
    assert (folder / "expenses.db").exists()
