"""Report endpoints (admin only).

All reports share the same query parameters and pagination. With
``format=csv`` the page is returned as a CSV attachment instead of JSON.
"""

from db.database import session_scope
from middlewares.authenticate import authenticate
from middlewares.authorise import Role, authorise
from models.report import ReportOptions
from routes import route
from utils import Response, use
from utils.errors import LabelingError
from utils.http import error_response, parse_model, path_param, query_params
from utils.reports import get_report_definition, run_report, serialize_report


@route('reports/{report_kind}', 'GET')
@use(authenticate)
@use(authorise(Role.ADMIN))
def get_report(event, response: Response):
    """Build one page of a labeling report.

    Reports: ``user-labeling`` (labels per creator, type and creation time),
    ``content-labeling`` (labeled and unlabeled events per device),
    ``employee-performance`` (labels per creator with full details),
    ``label-type-distribution`` (share of each label type),
    ``device-activity-summary`` (event counts and label types per device),
    ``labeling-efficiency`` (time from first event to label per creator).
    ---
    tags:
        - reports
    parameters:
        -   in: path
            name: report_kind
            schema:
                type: string
                enum:
                    - user-labeling
                    - content-labeling
                    - employee-performance
                    - label-type-distribution
                    - device-activity-summary
                    - labeling-efficiency
            required: true
        -   in: query
            name: page
            schema:
                type: integer
            required: false
        -   in: query
            name: limit
            schema:
                type: integer
            required: false
        -   in: query
            name: startDate
            schema:
                type: string
                format: date-time
            required: false
        -   in: query
            name: endDate
            schema:
                type: string
                format: date-time
            required: false
        -   in: query
            name: deviceId
            schema:
                type: string
            required: false
        -   in: query
            name: labelType
            schema:
                type: string
                enum: [song, ad, error, program]
            required: false
        -   in: query
            name: createdBy
            schema:
                type: string
            required: false
        -   in: query
            name: date
            schema:
                type: string
                format: date
            required: false
            description: Restrict employee-performance to one local calendar day
        -   in: query
            name: format
            schema:
                type: string
                enum: [json, csv]
            required: false
        -   in: query
            name: sort
            schema:
                type: string
                enum: [asc, desc]
            required: false
    responses:
        200:
            description: A page of the report
            content:
                application/json:
                    schema:
                        type: object
                        properties:
                            success:
                                type: boolean
                            report:
                                type: array
                                items:
                                    type: object
                            total:
                                type: integer
                            totalPages:
                                type: integer
                            currentPage:
                                type: integer
                text/csv:
                    schema:
                        type: string
        400:
            description: Unknown report or invalid options
        403:
            description: The user is not an admin
    """
    try:
        definition = get_report_definition(path_param(event, 'report_kind'))
        options = parse_model(ReportOptions, query_params(event))
        with session_scope() as session:
            result = run_report(session, definition.kind, options)
        if result.csv is not None:
            return response.csv(result.csv, f"{definition.kind.value}_report.csv")
        return {'success': True, **serialize_report(result)}
    except LabelingError as e:
        return error_response(response, e)
