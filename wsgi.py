from sportclub import create_app
from config import config
import os

env = os.getenv('FLASK_ENV', 'production')
app = create_app(config[env])

if __name__ == '__main__':
    cert_path = os.getenv('SSL_CERT_PATH', '/app/certs/cert.pem')
    key_path = os.getenv('SSL_KEY_PATH', '/app/certs/key.pem')

    if not os.path.exists(cert_path) or not os.path.exists(key_path):
        raise Exception("SSL certificates not found")

    app.run(ssl_context=(cert_path, key_path), host='0.0.0.0', port=443)
