"""
エントリーポイントのテスト
"""

import os
from unittest import mock

import main


class TestMain:

    def test_invalid_port_exits_with_error(self, capsys):
        """異常系: PORT が整数でない場合はトレースバックではなく終了コード 1"""
        with mock.patch.dict(os.environ, {"PORT": "web"}, clear=True), \
                mock.patch("main.load_dotenv"), \
                mock.patch("main.create_app") as create_app:
            assert main.main() == 1

        create_app.assert_not_called()
        assert "PORT" in capsys.readouterr().err

    def test_starts_threaded_server(self, tmp_path):
        env = {"PORT": "8080", "DEBUG": "true", "AUDIO_DIR": str(tmp_path / "audio")}
        with mock.patch.dict(os.environ, env, clear=True), \
                mock.patch("main.load_dotenv"), \
                mock.patch("main.create_app") as create_app:
            assert main.main() == 0

        create_app.return_value.run.assert_called_once_with(
            host="0.0.0.0", port=8080, debug=True, threaded=True
        )
