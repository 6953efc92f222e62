from wsfn.config import Service, WebService
from wsfn.server import server_configs


def test_default_listener(htdocs):
    configs = server_configs(WebService(htdocs=str(htdocs)))
    assert [(c.host, c.port) for c in configs] == [("localhost", 8000)]


def test_http_and_https_listeners_share_one_app(htdocs):
    ws = WebService(
        htdocs=str(htdocs),
        http=Service(scheme="http", host="localhost", port="8000"),
        https=Service(scheme="https", host="localhost", port="8443", cert_pem="cert.pem", key_pem="key.pem"),
    )
    http_cfg, https_cfg = server_configs(ws)
    assert (http_cfg.port, https_cfg.port) == (8000, 8443)
    assert http_cfg.ssl_certfile is None
    assert https_cfg.ssl_certfile == "cert.pem"
    assert https_cfg.ssl_keyfile == "key.pem"
    assert http_cfg.app is https_cfg.app
