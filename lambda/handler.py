import base64
import json
import logging
import os

import boto3

from record_store import (
    KEY_ATTRIBUTE,
    MissingPathParameter,
    RecordEncoder,
    RecordError,
    RecordStore,
    UnsupportedRoute,
    parse_record,
)

logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Se construye en la primera invocación y se reutiliza entre invocaciones
_dispatcher = None


def response_headers(allowed_origin, allow_credentials=False):
    headers = {
        'Content-Type': 'application/json',
        'Access-Control-Allow-Headers': 'Content-Type',
        'Access-Control-Allow-Origin': allowed_origin,
        'Access-Control-Allow-Methods': 'OPTIONS,PUT,GET,DELETE',
    }
    if allow_credentials:
        headers['Access-Control-Allow-Credentials'] = 'true'
    return headers


def route_key(event):
    method = event.get('httpMethod') or event.get('method') or ''
    resource = event.get('resource') or event.get('path') or ''
    return f'{method} {resource}'


def request_body(event):
    body = event.get('body')
    if body is not None and event.get('isBase64Encoded'):
        body = base64.b64decode(body).decode('utf-8')
    return body


def path_id(event):
    record_id = (event.get('pathParameters') or {}).get(KEY_ATTRIBUTE)
    if not record_id:
        raise MissingPathParameter(KEY_ATTRIBUTE)
    return record_id


class Dispatcher:
    """Enruta cada request de API Gateway a una de las cuatro operaciones sobre la tabla."""

    def __init__(self, store, collection, fields, headers):
        self.store = store
        self.fields = tuple(fields)
        self.headers = dict(headers)

        collection_path = '/' + collection.strip('/')
        self.routes = {
            f'GET {collection_path}': self.list_records,
            f'GET {collection_path}/{{id}}': self.read_record,
            f'PUT {collection_path}': self.put_record,
            f'DELETE {collection_path}/{{id}}': self.delete_record,
        }

    def dispatch(self, event):
        key = route_key(event)
        logger.info('Request: %s', key)
        logger.debug('Event: %s', json.dumps(event, default=str))

        status_code = 200
        try:
            operation = self.routes.get(key)
            if operation is None:
                raise UnsupportedRoute(key)
            body = operation(event)
        except RecordError as e:
            logger.warning('%s failed: %s', key, e)
            status_code = 400
            body = str(e)
        except Exception as e:
            logger.exception('%s failed', key)
            status_code = 400
            body = str(e)

        return {
            'statusCode': status_code,
            'body': json.dumps(body, cls=RecordEncoder),
            'headers': dict(self.headers),
        }

    def list_records(self, event):
        return self.store.scan_all()

    def read_record(self, event):
        # Un id inexistente devuelve None (null), no un error
        return self.store.get(path_id(event))

    def put_record(self, event):
        record = parse_record(request_body(event), self.fields)
        self.store.put(record)
        return f'Put record {record[KEY_ATTRIBUTE]}'

    def delete_record(self, event):
        record_id = path_id(event)
        self.store.delete(record_id)
        return f'Deleted record {record_id}'


def build_dispatcher(environ=None):
    environ = os.environ if environ is None else environ

    table_name = environ.get('TABLE_NAME')
    if not table_name:
        raise ValueError('Missing TABLE_NAME environment variable')

    table = boto3.resource('dynamodb').Table(table_name)
    fields = [f.strip() for f in environ.get('RECORD_FIELDS', '').split(',') if f.strip()]
    headers = response_headers(
        environ.get('ALLOWED_ORIGIN', 'http://localhost:3000'),
        environ.get('ALLOW_CREDENTIALS', 'false').lower() == 'true',
    )
    return Dispatcher(RecordStore(table), environ.get('COLLECTION', 'posts'), fields, headers)


def get_dispatcher():
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher()
    return _dispatcher


def main(event, context):
    return get_dispatcher().dispatch(event)
