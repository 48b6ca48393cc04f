"""
CourseHub development server

    python app.py
    flask --app app run
"""
import os
from coursehub import create_app

app = create_app(os.getenv('FLASK_CONFIG'))

if __name__ == '__main__':
    app.run(
        debug=app.config.get('DEBUG', False),
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', 5000))
    )
