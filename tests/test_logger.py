"""Unit tests for the logger."""

from routecalc.logger import Logger


class TestLogger:
    def test_writes_to_file_and_callback(self, tmp_path):
        received = []
        log_path = tmp_path / "route.log"
        logger = Logger(str(log_path), callback=lambda m, d: received.append((m, d)), echo=False)

        logger.log("Route requested", {"request_id": 1})
        logger.close()

        text = log_path.read_text()
        assert "routecalc session" in text
        assert 'Route requested | {"request_id": 1}' in text
        assert received == [("Route requested", {"request_id": 1})]

    def test_echo_prints(self, capsys):
        Logger().log("Waypoint added")
        assert "Waypoint added" in capsys.readouterr().out
