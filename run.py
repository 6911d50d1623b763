from inverapp import create_app

# Local development entry point. Deployments use api/index.py.
app = create_app()

if __name__ == '__main__':
    app.run(debug=True)
