"""Prompt templates for every model call.

Templates use ``string.Template`` placeholders (``$name``) so the embedded
JSON examples need no brace escaping.
"""
from string import Template

SCHOLARSHIP_RESEARCH_SYSTEM = (
    "You are a scholarship research specialist. Provide only verified, official "
    "scholarship information from legitimate sources. Never invent scholarships, "
    "amounts, deadlines or URLs."
)

SCHOLARSHIP_RESEARCH = Template("""Research scholarship opportunities for $university_name offering the $program program ($location).

STUDENT PROFILE (for eligibility matching):
- GPA: $gpa
- Nationality: $nationality

Cover, where they genuinely exist:
1. Official university scholarships and awards
2. Merit-based academic excellence awards
3. Need-based financial assistance
4. International student scholarships
5. External scholarships commonly held by students in this program

STRICT RULES:
- Do NOT fabricate data. Only include scholarships you are confident exist.
- Do NOT guess names, amounts, deadlines or URLs. Use "Not specified" for any unknown detail.
- If you are not sure any scholarship exists, return an empty list.

Return JSON:
{
  "scholarships": [
    {
      "name": "Official scholarship name",
      "amount": "Amount with currency and period",
      "criteria": ["Eligibility requirement"],
      "applicationDeadline": "Deadline with year",
      "applicationProcess": "Application steps",
      "sourceUrl": "Official webpage URL",
      "eligibilityMatch": "High|Medium|Low",
      "scholarshipType": "Merit|Need-based|International|Research|Program-specific",
      "studentProfileMatch": {
        "gpaRequirement": "GPA requirement",
        "matchesGPA": true,
        "academicRequirement": "Academic requirements",
        "matchesAcademic": true,
        "overallMatch": 85
      }
    }
  ]
}""")

OFFER_LETTER_SYSTEM = (
    "You are an expert education consultant specializing in university offer letter "
    "analysis and enrollment guidance. Respond with a single JSON object."
)

OFFER_LETTER_ANALYSIS = Template("""Analyze this university offer letter in full: every section, term, condition, financial obligation and piece of fine print.

DOCUMENT TEXT:
$document_text

SCHOLARSHIP RESEARCH DATA:
$scholarships

Return JSON with exactly this structure:
{
  "universityInfo": {
    "name": "Official university name",
    "location": "City, state, country",
    "program": "Program name with specialization",
    "tuition": "Tuition with currency and period",
    "duration": "Program duration",
    "startDate": "Program start date",
    "campus": "Campus",
    "studyMode": "Full-time/Part-time/Online"
  },
  "profileAnalysis": {
    "academicStanding": "Fit with academic requirements",
    "gpa": "GPA requirements and student compatibility",
    "financialStatus": "Financial capability assessment",
    "relevantSkills": ["Skill"],
    "strengths": ["Strength"],
    "weaknesses": ["Weakness"],
    "improvementAreas": ["Area to improve"]
  },
  "documentAnalysis": {
    "termsAndConditions": {
      "academicRequirements": [""],
      "financialObligations": [""],
      "enrollmentConditions": [""],
      "complianceRequirements": [""],
      "hiddenClauses": [""],
      "criticalDeadlines": [""],
      "penalties": [""]
    },
    "riskAssessment": {
      "highRiskFactors": [""],
      "financialRisks": [""],
      "academicRisks": [""],
      "complianceRisks": [""],
      "mitigationStrategies": [""]
    }
  },
  "scholarshipOpportunities": [],
  "costSavingStrategies": [
    {
      "strategy": "Cost-saving approach",
      "description": "How to implement it",
      "potentialSavings": "Amount or percentage",
      "implementationSteps": ["Step"],
      "timeline": "When",
      "difficulty": "Low|Medium|High"
    }
  ],
  "financialBreakdown": {
    "totalCost": "",
    "tuitionFees": "",
    "otherFees": "",
    "livingExpenses": "",
    "scholarshipOpportunities": "",
    "netCost": "",
    "paymentSchedule": [""],
    "fundingGaps": [""]
  },
  "recommendations": ["Prioritized recommendation"],
  "nextSteps": ["Concrete next step"]
}

Use only information found in the document or the scholarship research data.
If information is not found, use "Not specified in document" for that field.""")

VISA_SYSTEM = "You are a visa consultant specialized in analyzing visa approval and rejection letters."

VISA_ANALYSIS = Template('''You are an expert visa consultant. Analyze the following visa document.

First decide whether it is an APPROVAL or a REJECTION.

For approvals cover the key terms (validity, work permission, study conditions,
travel restrictions, compliance) and recommendations for staying compliant.
For rejections list each reason with a category: financial, documentation,
eligibility, academic, immigration_history, ties_to_home, credibility or general,
and give recommendations that address each reason.

Only use what the document states. Be specific and actionable.

Return JSON:
{
  "documentType": "approval|rejection",
  "summary": "Brief summary",
  "rejectionReasons": [
    {"title": "", "description": "", "category": "financial", "severity": "high|medium|low"}
  ],
  "keyTerms": [
    {"title": "", "description": "", "category": "validity|work_permission|study_conditions|travel_restrictions|compliance|general"}
  ],
  "recommendations": [{"title": "", "description": ""}],
  "nextSteps": [{"title": "", "description": ""}]
}

Visa document:
"""
$document_text
"""''')

ENROLLMENT_SYSTEM = (
    "You are an expert education counselor specializing in international student "
    "documentation and visa processes. Provide thorough, accurate analysis in JSON format."
)

ENROLLMENT_ANALYSIS = Template("""Analyze this $document_type_label enrollment document and extract all available information: financial details, scholarship terms, health cover, visa requirements and compliance obligations.

Filename: $filename
Detected country: $country

Document content:
$document_text

Return JSON:
{
  "institutionName": "", "studentName": "", "studentId": "",
  "programName": "", "programLevel": "", "startDate": "", "endDate": "",
  "institutionCountry": "", "studentCountry": "", "visaType": "",
  "tuitionAmount": "", "currency": "", "scholarshipAmount": "", "totalCost": "",
  "healthCover": "", "englishTestScore": "", "institutionContact": "", "visaObligations": "",
  "summary": "Summary covering fees, scholarships, health cover, deadlines and obligations",
  "keyFindings": [{"title": "", "description": "", "importance": "high|medium|low"}],
  "missingInformation": [{"field": "", "description": "", "impact": ""}],
  "recommendations": [{"title": "", "description": "", "priority": "urgent|important|suggested", "category": "documentation|financial|academic|visa|preparation"}],
  "nextSteps": [{"step": "", "description": "", "deadline": "", "category": "immediate|short_term|long_term"}],
  "isValid": true,
  "expiryDate": "",
  "complianceIssues": [{"issue": "", "severity": "critical|moderate|minor", "resolution": ""}],
  "analysisScore": 0,
  "confidence": 0
}

Rate analysisScore (0-100) by document completeness and confidence (0-100) by how
sure you are. Use plain language students and parents can understand.""")

DESTINATION_SYSTEM = (
    "You are an expert international education consultant providing personalized study "
    "destination recommendations. Respond with a single JSON object."
)

DESTINATION_ANALYSIS = Template("""Analyze this student's profile and recommend study destinations.

STUDENT PROFILE:
$profile

ADDITIONAL CONTEXT:
$context

Every field must be specific to this student's actual profile; no generic placeholders.

Return JSON with these keys:
executiveSummary (string), overallMatchScore (0-100),
topRecommendations (list of {country, countryCode, matchScore, ranking,
personalizedReasons[], specificAdvantages[], potentialChallenges[],
detailedCostBreakdown{tuitionFees{bachelors, masters, phd, specificProgram},
livingExpenses{accommodation, food, transportation, personalExpenses, healthInsurance, totalMonthly},
totalAnnualInvestment, scholarshipPotential, workStudyEarnings},
targetedUniversities[{name, ranking, programSpecific, admissionRequirements, scholarshipAvailable}],
personalizedVisaGuidance{successRate, specificRequirements[], timelineForUser, workRights, postStudyOptions},
careerPathway{industryDemand, salaryExpectations, careerProgression, networkingOpportunities, returnOnInvestment},
culturalAlignment{languageSupport, communityPresence, culturalAdaptation, supportSystems}}),
keyFactors[],
personalizedInsights{profileStrengths[], specificImprovementAreas[], tailoredStrategicActions[], uniqueOpportunities[]},
actionPlan{immediateActions[{action, deadline, priority, specificSteps[], resources[]}],
shortTermGoals[{goal, timeline, milestones[], requirements[], successMetrics[]}],
longTermStrategy[{objective, timeframe, keyActivities[], dependencies[], expectedOutcomes[]}]},
financialStrategy{personalizedBudgetPlan{totalInvestmentRequired, fundingGapAnalysis, cashflowProjection[]},
targetedScholarships[{scholarshipName, provider, amount, eligibilityMatch, applicationDeadline, competitiveness, applicationStrategy[]}],
costOptimizationStrategies[{strategy, potentialSavings, implementationSteps[], timeline}]},
personalizedTimeline{preparationPhase{duration, keyMilestones[], criticalDeadlines[]},
applicationPhase{duration, applicationWindows[], documentsRequired[]},
decisionPhase{duration, evaluationCriteria[], finalSteps[]}},
intelligentAlternatives[{country, whyBetterForUser, specificBenefits[], matchScore, costAdvantage, personalizedRationale}],
pathwayPrograms[{programType, description, duration, costDetails, specificEntryRequirements[], pathwayToProgram, suitabilityForUser}]""")

INSTITUTION_RESEARCH_SYSTEM = (
    "You are a professional scholarship research specialist with expertise in higher "
    "education funding. Provide accurate information based on official institutional sources only."
)

INSTITUTION_RESEARCH = Template("""Research scholarships at $institution_name for $program_level students in $program_name or related fields.

GUIDELINES:
1. Focus on scholarships offered directly by $institution_name
2. Include merit-based, need-based, international and program-specific scholarships
3. Include external scholarships commonly held by students at this institution
4. Provide authentic, current information only; do not fabricate scholarships, amounts or URLs
5. When a detail is unknown write "Not specified" rather than guessing

Return JSON:
{
  "scholarships": [
    {
      "scholarshipName": "", "description": "", "availableFunds": "",
      "fundingType": "Merit-based|Need-based|Athletic|International|Research|Other",
      "eligibilityCriteria": [""], "applicationDeadline": "", "applicationProcess": "",
      "requiredDocuments": [""], "scholarshipUrl": "", "contactEmail": "", "contactPhone": "",
      "numberOfAwards": "", "renewalCriteria": "", "additionalBenefits": ""
    }
  ],
  "researchMetadata": {"sourceUrls": [""]}
}""")
