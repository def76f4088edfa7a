"""
Run the inventory web application

    python app.py

Settings are read from the environment or a `.env` file, see
`inventory/config.py`.
"""

from inventory import app, init_database
from inventory.app import configure_logging

if __name__ == '__main__':
    configure_logging()
    init_database()
    app.run(debug=True)
