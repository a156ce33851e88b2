# checkout/asgi.py
# punkt wejścia dla serwera: uvicorn checkout.asgi:app
from checkout.main import create_app

app = create_app()
