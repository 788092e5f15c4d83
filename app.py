from src.punch_clock.punch_clock.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
