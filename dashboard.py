"""
SMS Expense Review Dashboard

A non-intrusive Flask-based tool for reviewing how notification messages are
classified. Messages are run through the existing extraction engine and the
per-message decisions, extracted fields and summary statistics are returned.

This tool is read-only and does NOT persist anything.
"""

import json
import os
from datetime import datetime
from typing import List, Dict, Any
from collections import defaultdict
import csv
import io

from flask import Flask, request, jsonify, send_file
from werkzeug.utils import secure_filename

from sms_expense_engine.parser import SmsExpenseParser
from sms_expense_engine.reporting.review import CatalogReviewer
from sms_batch_processor import SmsBatchProcessor


app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 50 * 1024 * 1024  # 50MB max upload

# Initialize engine components (read-only usage)
parser = SmsExpenseParser()
reviewer = CatalogReviewer()
batch_processor = SmsBatchProcessor(parser=parser)

EXPORT_FIELDS = [
    'timestamp_millis', 'occurred_at', 'body', 'accepted', 'gate_rule',
    'amount', 'merchant_name', 'merchant_rule', 'category', 'category_method',
    'identity_key', 'duplicate',
]


def describe_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Run raw messages through the engine and describe each decision.

    Args:
        messages: List of {"body", "timestamp_millis"} dicts

    Returns:
        List of per-message result dicts
    """
    results = []
    seen_keys = set()

    for idx, message in enumerate(messages):
        if not isinstance(message, dict) or 'body' not in message:
            raise ValueError(f"Message {idx} must be an object with a 'body' field")
        try:
            timestamp = int(message.get('timestamp_millis', 0))
        except (TypeError, ValueError):
            raise ValueError(f"Message {idx} has invalid timestamp_millis: {message.get('timestamp_millis')}")

        body = str(message['body'])
        result = parser.describe(body, timestamp)
        result['timestamp_millis'] = timestamp
        result['body'] = body

        key = result['identity_key']
        result['duplicate'] = key is not None and key in seen_keys
        if key is not None:
            seen_keys.add(key)

        results.append(result)

    return results


def generate_summary(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Generate aggregate summary statistics from message results.

    Args:
        results: List of per-message results

    Returns:
        Dictionary with summary statistics
    """
    summary = {
        'total_messages': len(results),
        'accepted': 0,
        'rejected': 0,
        'duplicates': 0,
        'without_amount': 0,
        'by_gate_rule': defaultdict(int),
        'by_category': defaultdict(int),
        'amount_by_category': defaultdict(float),
        'by_merchant_rule': defaultdict(int),
        'unknown_merchants': 0,
    }

    for result in results:
        summary['by_gate_rule'][result['gate_rule']] += 1
        if not result['accepted']:
            summary['rejected'] += 1
            continue

        summary['accepted'] += 1
        if result['amount'] is None:
            summary['without_amount'] += 1
            continue
        if result['duplicate']:
            summary['duplicates'] += 1
            continue

        summary['by_category'][result['category']] += 1
        summary['amount_by_category'][result['category']] += result['amount']
        summary['by_merchant_rule'][result['merchant_rule']] += 1
        if result['merchant_rule'] == 'none':
            summary['unknown_merchants'] += 1

    # Convert defaultdicts to regular dicts for JSON serialization
    summary['by_gate_rule'] = dict(summary['by_gate_rule'])
    summary['by_category'] = dict(summary['by_category'])
    summary['amount_by_category'] = {
        category: round(total, 2) for category, total in summary['amount_by_category'].items()
    }
    summary['by_merchant_rule'] = dict(summary['by_merchant_rule'])

    return summary


def catalog_suggestions(results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Catalog suggestions for merchants that ended up in Misc."""
    suggestions = []
    seen = set()
    for result in results:
        if result['category'] != 'Misc' or result['merchant_name'] in seen:
            continue
        seen.add(result['merchant_name'])
        suggestion = reviewer.suggest(result['merchant_name'])
        if suggestion is not None:
            suggestions.append({
                'merchant_name': suggestion.merchant_name,
                'suggested_merchant': suggestion.suggested_merchant,
                'suggested_category': suggestion.suggested_category,
                'score': suggestion.score,
            })
    return suggestions


def _read_results_payload():
    data = request.get_json(silent=True)
    if not data or 'results' not in data:
        return None, 'No results provided'
    if not isinstance(data['results'], list):
        return None, 'Results must be an array'
    return data['results'], None


@app.route('/')
def index():
    """Service description."""
    return jsonify({
        'service': 'SMS Expense Review Dashboard',
        'endpoints': {
            'POST /parse': 'JSON {"messages": [{"body", "timestamp_millis"}]}',
            'POST /upload': 'multipart "files" (JSON, JSON-lines, CSV or ZIP exports)',
            'POST /export/csv': 'JSON {"results": [...]}',
            'POST /export/json': 'JSON {"results": [...]}',
        },
    })


@app.route('/parse', methods=['POST'])
def parse_messages():
    """
    Classify messages posted as JSON.

    Returns JSON with per-message results and summary statistics.
    """
    data = request.get_json(silent=True)

    if not data or 'messages' not in data:
        app.logger.warning("Parse: No messages provided in request")
        return jsonify({'error': 'No messages provided'}), 400

    if not isinstance(data['messages'], list):
        return jsonify({'error': 'Messages must be an array'}), 400

    try:
        results = describe_messages(data['messages'])
    except ValueError as e:
        app.logger.warning(f"Parse: {e}")
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        app.logger.error(f"Parse error: {str(e)}", exc_info=True)
        return jsonify({'error': f'Failed to parse messages: {str(e)}'}), 500

    return jsonify({
        'success': True,
        'results': results,
        'summary': generate_summary(results),
        'suggestions': catalog_suggestions(results),
    })


@app.route('/upload', methods=['POST'])
def upload_files():
    """
    Handle multiple export uploads and extract expenses.

    Returns JSON with extracted expenses and per-file errors.
    """
    if 'files' not in request.files:
        return jsonify({'error': 'No files provided'}), 400

    files = request.files.getlist('files')

    if not files or all(f.filename == '' for f in files):
        return jsonify({'error': 'No files selected'}), 400

    uploads = [
        (secure_filename(f.filename), f.read())
        for f in files if f and f.filename
    ]

    try:
        batch = batch_processor.process_batch(batch_processor.expand_uploads(uploads))
    except Exception as e:
        app.logger.error(f"Upload error: {str(e)}", exc_info=True)
        return jsonify({'error': f'Failed to process files: {str(e)}'}), 500

    errors = [
        {'filename': error.file_name, 'error_type': error.error_type, 'error': error.error_message}
        for error in batch.errors
    ]

    if not batch.results and batch.stats.successful == 0:
        return jsonify({'error': 'All files failed to process', 'details': errors}), 400

    results = []
    for parsed in batch.results:
        row = parsed.record.to_dict()
        row['identity_key'] = parsed.identity_key
        row['category_method'] = parsed.match_method
        results.append(row)

    return jsonify({
        'success': True,
        'files_processed': batch.stats.successful,
        'messages_scanned': batch.stats.messages_scanned,
        'messages_accepted': batch.stats.messages_accepted,
        'duplicates': batch.stats.duplicates,
        'total_expenses': len(results),
        'total_amount': batch.stats.total_amount,
        'results': results,
        'suggestions': [
            {
                'merchant_name': s.merchant_name,
                'suggested_merchant': s.suggested_merchant,
                'suggested_category': s.suggested_category,
                'score': s.score,
            }
            for s in reviewer.review(batch.results)
        ],
        'errors': errors if errors else None,
    })


@app.route('/export/csv', methods=['POST'])
def export_csv():
    """
    Export results to CSV format.

    Expects JSON body with 'results' field containing message results.
    """
    try:
        results, problem = _read_results_payload()
        if problem:
            app.logger.warning(f"CSV export: {problem}")
            return jsonify({'error': problem}), 400

        # Create CSV in memory
        output = io.StringIO()
        fieldnames = list(EXPORT_FIELDS)
        for result in results:
            for key in result:
                if key not in fieldnames:
                    fieldnames.append(key)
        writer = csv.DictWriter(output, fieldnames=fieldnames, restval='')

        writer.writeheader()
        for result in results:
            writer.writerow(result)

        csv_data = output.getvalue().encode('utf-8')

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f'sms_expenses_{timestamp}.csv'

        app.logger.info(f"CSV export: Successfully exported {len(results)} results")

        return send_file(
            io.BytesIO(csv_data),
            mimetype='text/csv',
            as_attachment=True,
            download_name=filename
        )
    except Exception as e:
        app.logger.error(f"CSV export error: {str(e)}", exc_info=True)
        return jsonify({'error': f'Failed to export CSV: {str(e)}'}), 500


@app.route('/export/json', methods=['POST'])
def export_json():
    """
    Export results to JSON format.

    Expects JSON body with 'results' field containing message results.
    """
    try:
        results, problem = _read_results_payload()
        if problem:
            app.logger.warning(f"JSON export: {problem}")
            return jsonify({'error': problem}), 400

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f'sms_expenses_{timestamp}.json'

        json_data = json.dumps(results, indent=2).encode('utf-8')

        app.logger.info(f"JSON export: Successfully exported {len(results)} results")

        return send_file(
            io.BytesIO(json_data),
            mimetype='application/json',
            as_attachment=True,
            download_name=filename
        )
    except Exception as e:
        app.logger.error(f"JSON export error: {str(e)}", exc_info=True)
        return jsonify({'error': f'Failed to export JSON: {str(e)}'}), 500


if __name__ == '__main__':
    print("=" * 80)
    print("SMS Expense Review Dashboard")
    print("=" * 80)
    print("\nStarting dashboard on http://localhost:5001")
    print("This is a READ-ONLY tool that does not persist any expenses.")
    print("\nPress Ctrl+C to stop the server.")
    print("=" * 80)

    # Debug mode is controlled by environment variable
    debug_mode = os.environ.get('FLASK_DEBUG', '0') == '1'
    if debug_mode:
        print("\nWARNING: Running in DEBUG mode. Not suitable for production!")
        print("=" * 80)

    app.run(debug=debug_mode, port=5001, host='0.0.0.0')
