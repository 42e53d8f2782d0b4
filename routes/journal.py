from flask import Blueprint, current_app, jsonify, request
from extensions import sentiment_gateway
from forms import CreateEntryForm, UpdateTagsForm, form_errors
from services.errors import InvalidInputError
from services.journal_service import EntryWorkflow
from services.journal_store import JournalStore
from utils.helpers import get_pagination, page_to_dict

# Create blueprint
journal_bp = Blueprint('journal', __name__)


def get_workflow():
    return EntryWorkflow(JournalStore(), sentiment_gateway)


def _json_payload():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object")
    return payload


@journal_bp.route('/create', methods=['POST'])
def create_entry():
    payload = _json_payload()
    form = CreateEntryForm(formdata=None, data={'content': payload.get('content')})
    if not form.validate():
        raise InvalidInputError(form_errors(form))

    current_app.logger.info(f"Creating journal entry with content length: {len(form.content.data)}")
    result = get_workflow().create_entry(form.content.data)
    return jsonify(result.to_dict()), 201


@journal_bp.route('/<uuid:entry_id>/tags', methods=['PUT'])
def update_entry_tags(entry_id):
    payload = _json_payload()
    tag_names = payload.get('tagNames')
    if not isinstance(tag_names, list):
        raise InvalidInputError("Tag names cannot be null")

    form = UpdateTagsForm(formdata=None, data={'tag_names': tag_names})
    if not form.validate():
        raise InvalidInputError(form_errors(form))

    entry = get_workflow().update_tags(entry_id, form.tag_names.data)
    return jsonify(entry.to_dict())


@journal_bp.route('', methods=['GET'])
def list_entries():
    pagination = get_pagination(
        request.args.get('page', 1),
        request.args.get('size', current_app.config['ENTRIES_PAGE_SIZE']),
        max_per_page=current_app.config['MAX_PAGE_SIZE'],
    )
    entries = get_workflow().list_entries(pagination['page'], pagination['per_page'])
    return jsonify(page_to_dict(entries))


@journal_bp.route('/<uuid:entry_id>', methods=['GET'])
def get_entry(entry_id):
    entry = get_workflow().get_entry(entry_id)
    return jsonify(entry.to_dict())


@journal_bp.route('/<uuid:entry_id>', methods=['DELETE'])
def delete_entry(entry_id):
    get_workflow().delete_entry(entry_id)
    return '', 204


@journal_bp.route('/health', methods=['GET'])
def health():
    return "Journal API is running"
