"""`python -m pizza_gateway` serves the gateway on HOST:PORT."""

from pizza_gateway.main import run

if __name__ == "__main__":
    run()
