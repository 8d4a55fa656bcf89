"""
Flask JSON API for the incident reporting dashboard.

Thin caller boundary over the dashboard and reporting services. The actor
of each request is read from the X-User-* headers; application errors are
turned into transient notifications for the UI.
"""

import logging
import sys

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError as PydanticValidationError

from access_control import resolve_actor
from base_repository import to_validation_error
from config import get_config
from dashboard_service import IncidentFilters
from dependencies import get_container
from exceptions import AppException, ValidationError
from image_classifier import UploadedFile, classify_image
from logging_setup import setup_logging
from models import IncidentType
from regions import REGIONS
from reporting_service import ReportForm

# Load configuration
config = get_config()

app = Flask(__name__)
app.config['TESTING'] = config.testing
app.json.ensure_ascii = False

# Configure CORS
if config.cors_enabled:
    CORS(app,
         origins=config.cors_origins,
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'X-User-Id', 'X-User-Name', 'X-User-Role', 'X-User-Region'],
         max_age=600)

setup_logging(config, debug=config.flask_debug)
logger = logging.getLogger(__name__)


def current_actor():
    """Actor of the current request, resolved once per request."""
    if 'actor' not in g:
        g.actor = resolve_actor(
            request.headers.get('X-User-Name', ''),
            role=request.headers.get('X-User-Role') or None,
            region=request.headers.get('X-User-Region') or None,
            user_id=request.headers.get('X-User-Id') or None,
        )
    return g.actor


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def dump(record) -> dict:
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_all(records) -> list:
    return [dump(r) for r in records]


@app.errorhandler(AppException)
def handle_app_exception(error: AppException):
    """Surface application errors as a transient notification."""
    logger.warning(f"{request.method} {request.path} failed: {error}")
    body = error.to_dict()
    body.update({'success': False, 'notification': error.message})
    return jsonify(body), int(error.status_code)


@app.errorhandler(ValueError)
def handle_value_error(error: ValueError):
    if isinstance(error, PydanticValidationError):
        return handle_app_exception(to_validation_error(error, "request"))
    return handle_app_exception(ValidationError(str(error)))


@app.route('/api/health')
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/regions')
def list_regions():
    return jsonify({'regions': list(REGIONS)})


# -- incidents -------------------------------------------------------------

@app.route('/api/incidents', methods=['GET'])
def list_incidents():
    filters = IncidentFilters(
        type=request.args.get('type', 'ALL'),
        status=request.args.get('status', 'ALL'),
        region=request.args.get('region', 'ALL'),
        search=request.args.get('search', ''),
    )
    incidents = get_container().get_dashboard_service().list_incidents(current_actor(), filters)
    return jsonify({'incidents': dump_all(incidents), 'count': len(incidents)})


@app.route('/api/incidents', methods=['POST'])
def report_incident():
    """Report an incident from a JSON body or a multipart form with attachments."""
    if request.files:
        data = request.form.to_dict()
        uploads = [
            UploadedFile(f.filename or 'upload', f.mimetype or 'application/octet-stream', f.read())
            for f in request.files.getlist('attachments')
        ]
    else:
        data = json_body()
        uploads = []

    incident_type = IncidentType(data.pop('type', IncidentType.VITAL_EMERGENCY.value))
    form = ReportForm.model_validate(data)
    reporting = get_container().get_reporting_service()
    if incident_type == IncidentType.VITAL_EMERGENCY:
        incident = reporting.report_vital_emergency(current_actor(), form, uploads)
    else:
        incident = reporting.report_civil_problem(current_actor(), form, uploads)
    return jsonify({'success': True, 'incident': dump(incident),
                    'notification': 'Incident reported successfully'}), 201


@app.route('/api/incidents/history')
def incident_history():
    incidents = get_container().get_dashboard_service().history(
        current_actor(),
        incident_type=request.args.get('type', 'ALL'),
        status=request.args.get('status', 'ALL'),
    )
    return jsonify({'incidents': dump_all(incidents), 'count': len(incidents)})


@app.route('/api/incidents/<incident_id>/status', methods=['PUT'])
def update_incident_status(incident_id):
    status = json_body().get('status')
    incident = get_container().get_dashboard_service().update_status(current_actor(), incident_id, status)
    return jsonify({'success': True, 'incident': dump(incident), 'notification': 'Status updated'})


@app.route('/api/incidents/<incident_id>/comments', methods=['POST'])
def add_incident_comment(incident_id):
    message = json_body().get('message', '')
    incident = get_container().get_dashboard_service().add_comment(current_actor(), incident_id, message)
    return jsonify({'success': True, 'incident': dump(incident), 'notification': 'Comment added'}), 201


@app.route('/api/incidents/<incident_id>/assignment', methods=['PUT'])
def assign_incident(incident_id):
    admin_id = json_body().get('admin_id', '')
    if not admin_id:
        raise ValidationError("admin_id is required")
    dashboard = get_container().get_dashboard_service()
    incident = dashboard.assign(current_actor(), incident_id, admin_id)
    assignee = get_container().get_admin_directory().resolve_assignee(admin_id)
    return jsonify({'success': True, 'incident': dump(incident), 'assignee': assignee,
                    'notification': 'Incident assigned'})


@app.route('/api/detections', methods=['POST'])
def detect_incident():
    """Classify an uploaded photo to prefill a report."""
    image = request.files.get('image')
    if image is None:
        raise ValidationError("No image uploaded")
    upload = UploadedFile(image.filename or 'image', image.mimetype or 'image/jpeg', image.read())
    result = classify_image(upload, config.detection_delay_seconds)
    return jsonify({'detection': result.model_dump(mode="json", by_alias=True),
                    'applicable': result.confidence > config.detection_confidence_threshold})


# -- alerts ----------------------------------------------------------------

@app.route('/api/alerts', methods=['GET'])
def list_alerts():
    dashboard = get_container().get_dashboard_service()
    if request.args.get('active') in ('1', 'true'):
        alerts = dashboard.active_alerts(current_actor())
    else:
        alerts = dashboard.list_alerts(current_actor())
    return jsonify({'alerts': dump_all(alerts), 'count': len(alerts)})


@app.route('/api/alerts', methods=['POST'])
def create_alert():
    alert = get_container().get_dashboard_service().create_alert(current_actor(), json_body())
    return jsonify({'success': True, 'alert': dump(alert), 'notification': 'Alert created'}), 201


@app.route('/api/alerts/<alert_id>', methods=['PUT'])
def update_alert(alert_id):
    alert = get_container().get_dashboard_service().update_alert(current_actor(), alert_id, json_body())
    return jsonify({'success': True, 'alert': dump(alert), 'notification': 'Alert updated'})


@app.route('/api/alerts/<alert_id>', methods=['DELETE'])
def delete_alert(alert_id):
    get_container().get_dashboard_service().delete_alert(current_actor(), alert_id)
    return jsonify({'success': True, 'notification': 'Alert deleted'})


# -- guides ----------------------------------------------------------------

@app.route('/api/guides', methods=['GET'])
def list_guides():
    guides = get_container().get_guide_repository().get_all()
    return jsonify({'guides': dump_all(guides), 'count': len(guides)})


@app.route('/api/guides/<guide_id>', methods=['GET'])
def get_guide(guide_id):
    guide = get_container().get_guide_repository().get_by_id(guide_id)
    if guide is None:
        return jsonify({'success': False, 'notification': 'Guide not found'}), 404
    return jsonify({'guide': dump(guide)})


@app.route('/api/guides', methods=['POST'])
def create_guide():
    guide = get_container().get_dashboard_service().create_guide(current_actor(), json_body())
    return jsonify({'success': True, 'guide': dump(guide), 'notification': 'Guide created'}), 201


@app.route('/api/guides/<guide_id>', methods=['PUT'])
def replace_guide(guide_id):
    guide = get_container().get_dashboard_service().replace_guide(current_actor(), guide_id, json_body())
    return jsonify({'success': True, 'guide': dump(guide), 'notification': 'Guide updated'})


@app.route('/api/guides/<guide_id>', methods=['DELETE'])
def delete_guide(guide_id):
    get_container().get_dashboard_service().delete_guide(current_actor(), guide_id)
    return jsonify({'success': True, 'notification': 'Guide deleted'})


# -- admin directory -------------------------------------------------------

@app.route('/api/admins', methods=['GET'])
def list_admins():
    admins = get_container().get_dashboard_service().list_admins(current_actor())
    return jsonify({'admins': dump_all(admins), 'count': len(admins)})


@app.route('/api/admins', methods=['POST'])
def create_admin():
    admin = get_container().get_dashboard_service().create_admin(current_actor(), json_body())
    return jsonify({'success': True, 'admin': dump(admin), 'notification': 'Regional admin created'}), 201


@app.route('/api/admins/<admin_id>', methods=['PUT'])
def update_admin(admin_id):
    admin = get_container().get_dashboard_service().update_admin(current_actor(), admin_id, json_body())
    return jsonify({'success': True, 'admin': dump(admin), 'notification': 'Regional admin updated'})


@app.route('/api/admins/<admin_id>', methods=['DELETE'])
def delete_admin(admin_id):
    get_container().get_dashboard_service().delete_admin(current_actor(), admin_id)
    return jsonify({'success': True, 'notification': 'Regional admin deleted'})


@app.route('/api/stats')
def stats():
    return jsonify(get_container().get_dashboard_service().stats(current_actor()))


if __name__ == '__main__':
    debug_mode = '--debug' in sys.argv or config.flask_debug

    logger.info(f'Starting incident dashboard API on http://{config.flask_host}:{config.flask_port}')
    logger.info(f'Storage: {config.storage_backend} ({config.storage_db_path})')

    if debug_mode:
        logger.warning('Running in DEBUG mode - not suitable for production!')

    app.run(debug=debug_mode, host=config.flask_host, port=config.flask_port)
