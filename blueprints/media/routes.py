from flask import current_app, send_from_directory

from blueprints.media import media_bp


@media_bp.route('/uploads/<path:filename>', methods=['GET'])
def uploaded_file(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
